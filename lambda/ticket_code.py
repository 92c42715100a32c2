from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from common import _log
from gorgias_client import GorgiasClient, GorgiasError
from reason_codes import ReasonCode, resolve_reason_code
from settings import GorgiasSettings


FIELD_LABELS = {
    "Replacement SKU": "sku",
    "Reason Codes": "reason_code",
    "Kit Group": "kit_group",
    "Previous Doc#": "doc",
}


class TicketCodeError(Exception):
    action = "error"
    user_message = "Something went wrong. Please try again."


class MissingInput(TicketCodeError):
    action = "missing_input"
    user_message = "Please provide a ticket number and representative email."


class UpstreamUnavailable(TicketCodeError):
    action = "upstream_unavailable"
    user_message = "Invalid Ticket Number Provided. Please try again."


class IncompleteTicketData(TicketCodeError):
    action = "incomplete_ticket"
    user_message = (
        "There is missing info on the gorgias ticket. Please make sure the ticket has a "
        "'Replacement SKU', 'Reason Codes', 'Kit Group', and 'Previous Doc#' field."
    )


class TicketFields(BaseModel):
    sku: Optional[str] = None
    kit_group: Optional[str] = None
    reason_code: Optional[str] = None
    doc: Optional[str] = None

    def missing(self) -> List[str]:
        return [name for name in ("sku", "kit_group", "reason_code", "doc") if not getattr(self, name)]


def representative_code(email: str, settings: GorgiasSettings) -> str:
    if settings.special_case_email and email == settings.special_case_email:
        return settings.special_case_code
    return email.split("@", 1)[0].upper()


def extract_ticket_fields(payload: Any) -> TicketFields:
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, list):
        raise IncompleteTicketData("Ticket response has no data list")

    values: Dict[str, Optional[str]] = {}
    for entry in data:
        if not isinstance(entry, dict):
            continue
        field = entry.get("field")
        label = field.get("label") if isinstance(field, dict) else None
        value = entry.get("value")
        slot = FIELD_LABELS.get(label) if isinstance(label, str) else None
        if slot is None:
            _log("DEBUG", "Ignoring custom field", label=label)
            continue
        values[slot] = None if value is None else str(value)
    return TicketFields(**values)


def render_ticket_code(fields: TicketFields, representative: str, ticket_id: str) -> str:
    return (
        f"SKU{fields.sku}|KG{fields.kit_group}|RC{fields.reason_code}"
        f"|DOC{fields.doc}|REP{representative}|TIX{ticket_id}"
    )


def format_ticket_code(
    ticket_id: Optional[str],
    representative_email: Optional[str],
    settings: GorgiasSettings,
    client: GorgiasClient,
    reason_codes: List[ReasonCode],
) -> str:
    if not ticket_id or not representative_email:
        raise MissingInput("ticketNum and representative are required")

    representative = representative_code(representative_email, settings)

    try:
        payload = client.list_ticket_custom_fields(ticket_id)
    except GorgiasError as exc:
        raise UpstreamUnavailable(str(exc)) from exc

    fields = extract_ticket_fields(payload)
    fields.reason_code = resolve_reason_code(fields.reason_code, reason_codes)

    missing = fields.missing()
    if missing:
        raise IncompleteTicketData(f"Missing ticket fields: {', '.join(missing)}")

    return render_ticket_code(fields, representative, ticket_id)
