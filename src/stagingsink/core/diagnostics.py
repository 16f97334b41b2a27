"""
Structured internal diagnostics.

Non-fatal problems (codec fallback, failed record writes, best-effort delete)
are reported here rather than raised. Each diagnostic is a flat dict emitted
as one JSON line on stderr unless a different writer is supplied, either per
call (`writer=`) or process-wide for tests (`set_writer_for_tests`).
"""

from __future__ import annotations

import sys
import time
from typing import Any, Callable

import orjson

DiagnosticWriter = Callable[[dict[str, Any]], None]


def _default_writer(payload: dict[str, Any]) -> None:
    line = orjson.dumps(payload, default=str, option=orjson.OPT_APPEND_NEWLINE)
    sys.stderr.write(line.decode("utf-8"))
    sys.stderr.flush()


_writer: DiagnosticWriter = _default_writer
_enabled_cache: bool | None = None


def _is_enabled() -> bool:
    global _enabled_cache
    if _enabled_cache is None:
        try:
            from .settings import Settings

            _enabled_cache = bool(Settings().core.internal_logging_enabled)
        except Exception:
            _enabled_cache = True
    return _enabled_cache


def set_writer_for_tests(writer: DiagnosticWriter) -> None:
    """Replace the process-wide diagnostics writer."""
    global _writer
    _writer = writer


def _reset_for_tests() -> None:
    global _writer, _enabled_cache
    _writer = _default_writer
    _enabled_cache = None


def emit(
    level: str,
    component: str,
    message: str,
    *,
    writer: DiagnosticWriter | None = None,
    **fields: Any,
) -> None:
    """Emit one diagnostic payload; never raises.

    An explicitly supplied `writer` always receives the payload. The
    process-wide writer is gated by ``core.internal_logging_enabled``.
    """
    if writer is None and not _is_enabled():
        return
    payload: dict[str, Any] = {
        "timestamp": time.time(),
        "level": level,
        "component": component,
        "message": message,
    }
    payload.update(fields)
    try:
        (writer or _writer)(payload)
    except Exception:
        # Diagnostics must never break the caller
        pass


def warn(
    component: str,
    message: str,
    *,
    writer: DiagnosticWriter | None = None,
    **fields: Any,
) -> None:
    emit("WARN", component, message, writer=writer, **fields)


def debug(
    component: str,
    message: str,
    *,
    writer: DiagnosticWriter | None = None,
    **fields: Any,
) -> None:
    emit("DEBUG", component, message, writer=writer, **fields)


__all__ = [
    "DiagnosticWriter",
    "emit",
    "warn",
    "debug",
    "set_writer_for_tests",
]
