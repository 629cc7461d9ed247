# taller/core/logging_config.py
"""Logging estructurado (una línea JSON por registro) para el paquete taller."""

import json
import logging
import sys
import threading
from contextvars import ContextVar
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

__all__ = [
    "LogContext",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
    "reset_logging",
]

_LOGGER_PREFIX = "taller"


class LogContext:
    """Campos por request (id de request, usuario) propagados vía ContextVar."""

    _request_id: ContextVar[str | None] = ContextVar("log_request_id", default=None)
    _usuario: ContextVar[str | None] = ContextVar("log_usuario", default=None)

    _FIELD_NAMES = ("request_id", "usuario")

    @classmethod
    def set(cls, *, request_id: str | None = None, usuario: str | None = None) -> None:
        if request_id is not None:
            cls._request_id.set(request_id)
        if usuario is not None:
            cls._usuario.set(usuario)

    @classmethod
    def get_all(cls) -> dict[str, str]:
        ctx: dict[str, str] = {}
        for name in cls._FIELD_NAMES:
            val = getattr(cls, f"_{name}").get()
            if val is not None:
                ctx[name] = val
        return ctx

    @classmethod
    def clear(cls) -> None:
        for name in cls._FIELD_NAMES:
            getattr(cls, f"_{name}").set(None)


_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return str(obj)
    return str(obj)


class StructuredFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(LogContext.get_all())

        for key, val in vars(record).items():
            if key not in _STDLIB_KEYS and key not in payload:
                payload[key] = val

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            payload["exc_type"] = type(exc).__name__
            payload["exc_message"] = str(exc)
            if hasattr(exc, "code"):
                payload["exc_code"] = exc.code
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default, ensure_ascii=False)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int | str = logging.INFO,
    handler: logging.Handler | None = None,
) -> None:
    """Configura la jerarquía ``taller`` una sola vez por proceso."""
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    root = logging.getLogger(_LOGGER_PREFIX)
    root.setLevel(level)
    root.propagate = False

    h = handler if handler is not None else logging.StreamHandler(sys.stderr)
    h.setFormatter(StructuredFormatter())
    root.addHandler(h)


def reset_logging() -> None:
    """Solo para tests."""
    global _configured
    with _lock:
        _configured = False
    root = logging.getLogger(_LOGGER_PREFIX)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
