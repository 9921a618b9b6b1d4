"""Structured event logging for the gateway.

Each event is a single JSON object per line so the decision points (backend
selection, request dispatch, failure capture) can be grepped and parsed.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional

LOGGER_NAME = "assistant_gateway"

_LEVELS = {
    "silent": logging.CRITICAL + 10,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def _to_log_safe(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, dict):
        return {str(k): _to_log_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_to_log_safe(v) for v in value]
    return str(value)


def level_from_name(name: Optional[str]) -> int:
    """Map an n8n-style level name ("info", "warn", ...) to a logging level."""
    return _LEVELS.get((name or "info").strip().lower(), logging.INFO)


def extract_http_error_context(error: Exception) -> Dict[str, Any]:
    """Pull status and url out of an httpx error when they are there."""
    context: Dict[str, Any] = {}
    response = getattr(error, "response", None)
    try:
        # httpx raises RuntimeError when the request was never attached
        request = getattr(error, "request", None)
    except RuntimeError:
        request = None
    if response is not None:
        context["http_status"] = getattr(response, "status_code", None)
    if request is not None:
        context["http_method"] = str(getattr(request, "method", ""))
        context["http_url"] = str(getattr(request, "url", ""))
    return context


def log_event(event: str, level: int = logging.INFO, **fields: Any) -> None:
    """Emit a structured log event."""
    payload: Dict[str, Any] = {
        "ts": datetime.now().astimezone().isoformat(),
        "event": event,
    }
    for key, value in fields.items():
        payload[key] = _to_log_safe(value)
    logging.getLogger(LOGGER_NAME).log(level, json.dumps(payload, ensure_ascii=False, separators=(",", ":")))


def setup_logging(level: Optional[str] = None) -> None:
    """Attach a stream handler to the gateway logger at the configured level."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level_from_name(level))
    if not any(getattr(h, "_gateway_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        handler._gateway_handler = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
