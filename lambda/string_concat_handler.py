from typing import Any, Dict

from common import _emit_metric, _log, json_response, request_params
from gorgias_client import GorgiasClient
from reason_codes import ReasonCodeError, load_reason_codes
from settings import ConfigurationError, GorgiasSettings, ReasonCodeSettings
from ticket_code import MissingInput, TicketCodeError, UpstreamUnavailable, format_ticket_code


def handler(event, _context):
    if not isinstance(event, dict):
        event = {}
    ticket_id = ""

    try:
        params: Dict[str, Any] = request_params(event)
        ticket_id = str(params.get("ticketNum") or "").strip()
        representative_email = str(params.get("representative") or "").strip()
        _log("INFO", "Ticket code requested", ticketNum=ticket_id, representative=representative_email)

        if not ticket_id or not representative_email:
            raise MissingInput("ticketNum and representative are required")

        settings = GorgiasSettings.from_env()
        source = ReasonCodeSettings.from_env()
        # Reloaded on every invocation so workbook edits apply immediately
        reason_codes = load_reason_codes(path=source.path, bucket=source.bucket, key=source.key)

        code = format_ticket_code(
            ticket_id,
            representative_email,
            settings,
            GorgiasClient(settings),
            reason_codes,
        )
    except TicketCodeError as exc:
        _log("WARN", "Ticket code failed", ticketNum=ticket_id, reason=type(exc).__name__, error=str(exc))
        _emit_metric("TicketCode", 1, action=exc.action)
        return json_response(exc.user_message)
    except (ConfigurationError, ReasonCodeError) as exc:
        _log("ERROR", "Ticket code configuration error", ticketNum=ticket_id, error=str(exc))
        _emit_metric("TicketCode", 1, action="config_error")
        return json_response(UpstreamUnavailable.user_message)
    except Exception as exc:
        _log("ERROR", "Unexpected ticket code failure", ticketNum=ticket_id, error=str(exc))
        _emit_metric("TicketCode", 1, action="process_error")
        return json_response(UpstreamUnavailable.user_message)

    _log("INFO", "Ticket code generated", ticketNum=ticket_id, code=code)
    _emit_metric("TicketCode", 1, action="success")
    return json_response(code)
