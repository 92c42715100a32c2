import base64
import binascii
import json
import os
import time
from typing import Any, Dict, Optional
from urllib.parse import parse_qs


METRIC_NAMESPACE = os.getenv("METRIC_NAMESPACE", "TicketTools")


def _log(level: str, message: str, **fields: Any) -> None:
    entry = {"level": level, "message": message, **fields}
    print(json.dumps(entry, default=str))


def _emit_metric(name: str, value: float, unit: str = "Count", **dims: str) -> None:
    emf = {
        "_aws": {
            "Timestamp": int(time.time() * 1000),
            "CloudWatchMetrics": [
                {
                    "Namespace": METRIC_NAMESPACE,
                    "Dimensions": [list(dims.keys())] if dims else [[]],
                    "Metrics": [{"Name": name, "Unit": unit}],
                }
            ],
        },
        name: value,
        **dims,
    }
    print(json.dumps(emf))


def request_method(event: Dict[str, Any]) -> str:
    # Function URLs use payload v2 (requestContext.http), REST APIs use httpMethod
    http = (event.get("requestContext") or {}).get("http") or {}
    return (http.get("method") or event.get("httpMethod") or "GET").upper()


def request_body(event: Dict[str, Any]) -> str:
    body = event.get("body") or ""
    if body and event.get("isBase64Encoded"):
        try:
            body = base64.b64decode(body, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            _log("WARN", "Undecodable request body", error=str(exc))
            return ""
    return body


def request_params(event: Dict[str, Any]) -> Dict[str, str]:
    """Query string parameters, falling back to a form or JSON body on POST."""
    params = dict(event.get("queryStringParameters") or {})
    if request_method(event) != "POST":
        return params

    body = request_body(event)
    if not body:
        return params

    body_params: Dict[str, Any]
    try:
        parsed = json.loads(body)
        body_params = parsed if isinstance(parsed, dict) else {}
    except json.JSONDecodeError:
        body_params = {k: v[0] for k, v in parse_qs(body).items()}

    for key, value in body_params.items():
        if not params.get(key) and value is not None:
            params[key] = str(value)
    return params


def json_response(text: str, status_code: int = 200) -> Dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps({"response": text}),
    }


def text_response(text: str, status_code: int = 200, content_type: Optional[str] = None) -> Dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": content_type or "text/plain"},
        "body": text,
    }
