"""Glue between OpenFaaS-style ``(event, context)`` calls and the services."""

from __future__ import annotations

import io
import json
from typing import Any, BinaryIO, Dict, Optional


def header(event: Any, name: str) -> Optional[str]:
    """Case-insensitive header lookup; works for plain dicts and werkzeug headers."""
    headers = getattr(event, "headers", None) or {}
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def body_stream(event: Any) -> BinaryIO:
    body = getattr(event, "body", None)
    if body is None:
        return io.BytesIO(b"")
    if hasattr(body, "read"):
        return body
    if isinstance(body, str):
        body = body.encode("utf-8")
    return io.BytesIO(body)


def response(status_code: int, payload: Any) -> Dict[str, Any]:
    return {
        "statusCode": status_code,
        "body": json.dumps(payload),
        "headers": {"Content-Type": "application/json"},
    }


def error_response(status_code: int, message: str) -> Dict[str, Any]:
    return response(status_code, {"status": "error", "message": message})
