from pathlib import Path
import base64
import json
import sys

import requests

sys.path.append(str(Path(__file__).resolve().parents[1] / "lambda"))

import gorgias_client
import string_concat_handler as sch
from reason_codes import ReasonCode, ReasonCodeError
from ticket_code import IncompleteTicketData, MissingInput, UpstreamUnavailable


class DummyResponse:
    def __init__(self, payload):
        self.payload = payload

    def raise_for_status(self):
        pass

    def json(self):
        return self.payload


class DummySession:
    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error
        self.urls = []

    def get(self, url, auth, headers, timeout):
        self.urls.append(url)
        if self.error:
            raise self.error
        return DummyResponse(self.payload)


TICKET = {
    "data": [
        {"field": {"label": "Replacement SKU"}, "value": "ABC-100"},
        {"field": {"label": "Reason Codes"}, "value": "Wrong item"},
        {"field": {"label": "Kit Group"}, "value": "KG5"},
        {"field": {"label": "Previous Doc#"}, "value": "SO-42"},
    ]
}


def _configure(monkeypatch, session, table=None):
    monkeypatch.setenv("GORGIAS_USERNAME", "agent@example.com")
    monkeypatch.setenv("GORGIAS_KEY", "secret")
    monkeypatch.setenv("GORGIAS_BASE_URL", "https://acme.gorgias.com")
    monkeypatch.setenv("SPECIAL_CASE_EMAIL", "gverrochi@example.com")
    monkeypatch.setattr(gorgias_client.requests, "Session", lambda: session)
    monkeypatch.setattr(
        sch,
        "load_reason_codes",
        lambda **_kwargs: table if table is not None else [ReasonCode("Wrong item", "12")],
    )


def _event(**params):
    return {"queryStringParameters": params, "requestContext": {"http": {"method": "GET"}}}


def _body(result):
    assert result["statusCode"] == 200
    assert result["headers"]["Content-Type"] == "application/json"
    return json.loads(result["body"])["response"]


def test_handler_returns_ticket_code(monkeypatch):
    session = DummySession(TICKET)
    _configure(monkeypatch, session)

    result = sch.handler(_event(ticketNum="555", representative="gverrochi@example.com"), None)

    assert _body(result) == "SKUABC-100|KGKG5|RC12|DOCSO-42|REPGRACE|TIX555"
    assert session.urls == ["https://acme.gorgias.com/api/tickets/555/custom-fields"]


def test_handler_missing_input(monkeypatch):
    session = DummySession(TICKET)
    _configure(monkeypatch, session)

    result = sch.handler(_event(ticketNum="555"), None)

    assert _body(result) == MissingInput.user_message
    assert session.urls == []


def test_handler_network_error_does_not_raise(monkeypatch):
    _configure(monkeypatch, DummySession(error=requests.ConnectionError("down")))

    result = sch.handler(_event(ticketNum="555", representative="jdoe@x.com"), None)

    assert _body(result) == UpstreamUnavailable.user_message


def test_handler_incomplete_ticket(monkeypatch):
    _configure(monkeypatch, DummySession({"data": TICKET["data"][:3]}))

    result = sch.handler(_event(ticketNum="555", representative="jdoe@x.com"), None)

    assert _body(result) == IncompleteTicketData.user_message


def test_handler_reads_form_body_on_post(monkeypatch):
    _configure(monkeypatch, DummySession(TICKET))
    event = {
        "requestContext": {"http": {"method": "POST"}},
        "body": "ticketNum=777&representative=jdoe%40x.com",
    }

    result = sch.handler(event, None)

    assert _body(result) == "SKUABC-100|KGKG5|RC12|DOCSO-42|REPJDOE|TIX777"


def test_handler_missing_configuration(monkeypatch):
    _configure(monkeypatch, DummySession(TICKET))
    monkeypatch.delenv("GORGIAS_KEY")

    result = sch.handler(_event(ticketNum="555", representative="jdoe@x.com"), None)

    assert _body(result) == UpstreamUnavailable.user_message


def test_handler_unreadable_workbook(monkeypatch):
    _configure(monkeypatch, DummySession(TICKET))

    def boom(**_kwargs):
        raise ReasonCodeError("missing workbook")

    monkeypatch.setattr(sch, "load_reason_codes", boom)

    result = sch.handler(_event(ticketNum="555", representative="jdoe@x.com"), None)

    assert _body(result) == UpstreamUnavailable.user_message


def test_handler_undecodable_body_is_missing_input(monkeypatch):
    session = DummySession(TICKET)
    _configure(monkeypatch, session)
    event = {
        "requestContext": {"http": {"method": "POST"}},
        "isBase64Encoded": True,
        "body": base64.b64encode(b"\xff\xfe\x00ticketNum=1").decode("ascii"),
    }

    result = sch.handler(event, None)

    assert _body(result) == MissingInput.user_message
    assert session.urls == []
