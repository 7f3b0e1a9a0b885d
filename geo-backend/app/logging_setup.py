"""Logging configuration for the geo service.

ENABLE_JSON_LOGS=1 (default) emits one JSON object per line, anything else a
short human-readable line. LOG_LEVEL sets the root level (default INFO).

Structured extras picked up from records: request_id, path, method, status,
duration_ms for HTTP traffic; projection, accuracy for conversions that fall
back to degraded precision.
"""
from __future__ import annotations

import json
import logging
import os
import sys
import uuid
from time import perf_counter
from typing import Any, Dict, Optional

REQUEST_ID_HEADER = "X-Request-ID"

_EXTRA_FIELDS = ("request_id", "path", "method", "status", "duration_ms", "projection", "accuracy")
_PLAIN_KEYS = {"request_id": "rid", "path": "path", "status": "status", "projection": "proj", "accuracy": "acc"}


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: getattr(record, k) for k in _EXTRA_FIELDS if hasattr(record, k)}


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover - formatting
        doc: Dict[str, Any] = {
            "ts": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        doc.update(_extras(record))
        if record.exc_info and record.exc_info[0] is not None:
            doc["exc_type"] = record.exc_info[0].__name__
            doc["exc"] = self.formatException(record.exc_info)
        return json.dumps(doc, ensure_ascii=False, default=str)


class _PlainFormatter(logging.Formatter):  # pragma: no cover - formatting
    def format(self, record: logging.LogRecord) -> str:
        line = f"{self.formatTime(record, datefmt='%H:%M:%S')} {record.levelname[0]} {record.name}: {record.getMessage()}"
        extras = _extras(record)
        tail = " ".join(f"{short}={extras[key]}" for key, short in _PLAIN_KEYS.items() if key in extras)
        if tail:
            line = f"{line} {tail}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def configure_logging(level: Optional[str] = None, json_logs: Optional[bool] = None) -> None:
    """Install a single stdout handler on the root logger. Later calls are no-ops."""
    if getattr(configure_logging, "_configured", False):
        return
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    if json_logs is None:
        json_logs = os.getenv("ENABLE_JSON_LOGS", "1") == "1"
    root = logging.getLogger()
    root.setLevel(level)
    # uvicorn installs its own handlers; route everything through ours
    for h in list(root.handlers):
        root.removeHandler(h)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter() if json_logs else _PlainFormatter())
    root.addHandler(handler)
    configure_logging._configured = True  # type: ignore[attr-defined]


async def logging_middleware(request, call_next):
    rid = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
    request.state.request_id = rid
    log = logging.getLogger("request")
    ctx = {"request_id": rid, "path": request.url.path, "method": request.method}
    log.info("request.start", extra=ctx)
    started = perf_counter()
    response = None
    try:
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
    finally:
        status = response.status_code if response is not None else 500
        log.log(
            logging.WARNING if status >= 500 else logging.INFO,
            "request.end",
            extra={**ctx, "status": status, "duration_ms": round((perf_counter() - started) * 1000.0, 2)},
        )


__all__ = ["REQUEST_ID_HEADER", "configure_logging", "logging_middleware"]
