import html
import json
import smtplib
from email.message import EmailMessage
from typing import Any, Optional

from common import _emit_metric, _log, request_body, text_response
from settings import MailSettings, TransactionStoreSettings
from transaction_store import TransactionStore


def _parse_body(event) -> Optional[Any]:
    body = request_body(event)
    if not body:
        return None
    try:
        return json.loads(body)
    except json.JSONDecodeError:
        _log("WARN", "Webhook body is not JSON", length=len(body))
        return None


def _send_email(settings: MailSettings, body_text: str) -> None:
    msg = EmailMessage()
    msg["Subject"] = "New Transaction!!"
    msg["From"] = settings.sender
    msg["To"] = settings.recipient
    msg.set_content(body_text)
    msg.add_alternative(
        f"<div><h2>New transaction!!</h2><p>{html.escape(body_text)}</p></div>",
        subtype="html",
    )

    with smtplib.SMTP_SSL(settings.host, settings.port, timeout=10) as smtp:
        smtp.login(settings.sender, settings.password)
        smtp.send_message(msg)


def handler(event, _context):
    if not isinstance(event, dict):
        event = {}
    try:
        payload = _parse_body(event)
    except Exception as exc:
        _log("WARN", "Failed to read webhook body", error=str(exc))
        payload = None
    body_text = json.dumps(payload) if payload is not None else ""
    _log("INFO", "Transaction received", length=len(body_text))
    _emit_metric("TransactionWebhook", 1, action="received")

    try:
        _send_email(MailSettings.from_env(), body_text)
        _log("INFO", "Transaction email sent")
    except Exception as exc:
        _log("ERROR", "Failed to send transaction email", error=str(exc))
        _emit_metric("TransactionWebhook", 1, action="mail_error")

    try:
        store_settings = TransactionStoreSettings.from_env()
        if store_settings is not None:
            TransactionStore(store_settings).insert(payload)
            _log("INFO", "Transaction recorded", table=store_settings.table)
    except Exception as exc:
        _log("ERROR", "Failed to record transaction", error=str(exc))
        _emit_metric("TransactionWebhook", 1, action="store_error")

    return text_response("Hello!")
