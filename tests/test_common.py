from pathlib import Path
import base64
import json
import sys

sys.path.append(str(Path(__file__).resolve().parents[1] / "lambda"))

import common


def test_request_params_prefers_query_string():
    event = {
        "requestContext": {"http": {"method": "POST"}},
        "queryStringParameters": {"ticketNum": "1"},
        "body": json.dumps({"ticketNum": "2", "representative": "jdoe@x.com"}),
    }
    assert common.request_params(event) == {"ticketNum": "1", "representative": "jdoe@x.com"}


def test_request_params_ignores_body_on_get():
    event = {"httpMethod": "GET", "body": "ticketNum=2"}
    assert common.request_params(event) == {}


def test_request_params_decodes_base64_form_body():
    body = base64.b64encode(b"ticketNum=9&representative=a%40b.com").decode("ascii")
    event = {"httpMethod": "POST", "body": body, "isBase64Encoded": True}
    assert common.request_params(event) == {"ticketNum": "9", "representative": "a@b.com"}


def test_json_response_shape():
    result = common.json_response("hello")
    assert result["statusCode"] == 200
    assert result["headers"] == {"Content-Type": "application/json"}
    assert json.loads(result["body"]) == {"response": "hello"}


def test_log_writes_json_line(capsys):
    common._log("INFO", "hello", ticketNum="1")
    line = capsys.readouterr().out.strip()
    assert json.loads(line) == {"level": "INFO", "message": "hello", "ticketNum": "1"}


def test_request_body_undecodable_base64_is_empty():
    body = base64.b64encode(b"\xff\xfe\x00ticketNum=1").decode("ascii")
    assert common.request_body({"body": body, "isBase64Encoded": True}) == ""
    assert common.request_body({"body": "not base64!", "isBase64Encoded": True}) == ""
