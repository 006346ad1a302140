"""
Structured logging utilities for Tubely functions.

All logs are emitted as JSON lines to stdout so OpenFaaS/Loki can ingest them easily.
"""

from __future__ import annotations

import json
import os
import socket
import sys
import time
from typing import Any, Dict, Optional

HOSTNAME = socket.gethostname()
SERVICE_NAME = os.getenv("FUNCTION_NAME", "unknown-function")

# ffmpeg can be very chatty; only the tail is useful to operators.
STDERR_TAIL_CHARS = 2000


def log_event(stage: str, event: str, request_id: Optional[str] = None, **fields: Any) -> None:
    """
    Emit a structured log line.

    Example:
        log_event("normalize", "start", request_id="abc", input_path="/tmp/...")
    """
    record: Dict[str, Any] = {
        "timestamp": time.time(),
        "stage": stage,
        "event": event,
        "request_id": request_id,
        "service": SERVICE_NAME,
        "host": HOSTNAME,
    }
    record.update(fields)
    sys.stdout.write(json.dumps(record, default=str) + "\n")
    sys.stdout.flush()


def log_exception(stage: str, request_id: Optional[str], exc: BaseException) -> None:
    """Convenience helper to log exceptions together with their cause."""
    fields: Dict[str, Any] = {"error_type": type(exc).__name__, "error": str(exc)}
    if exc.__cause__ is not None:
        fields["cause_type"] = type(exc.__cause__).__name__
        fields["cause"] = str(exc.__cause__)
    log_event(stage, "error", request_id=request_id, **fields)


def tail(text: Optional[str], limit: int = STDERR_TAIL_CHARS) -> str:
    if not text:
        return ""
    return text[-limit:]
