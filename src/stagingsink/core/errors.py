"""
Error taxonomy for the staging sink.

Every error raised by this package derives from `StagingSinkError` and carries
an `ErrorContext` describing what failed (category, severity, file, codec).
Only `StagingIOError` and, when explicitly requested, `WriteError` ever reach
callers; codec resolution errors are recovered inside the writer.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    IO = "io"
    CODEC = "codec"
    WRITE = "write"
    CONFIG = "config"


class ErrorSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class ErrorContext:
    """Structured context captured when an error is created."""

    category: ErrorCategory
    severity: ErrorSeverity
    error_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: float = field(default_factory=time.time)
    path: str | None = None
    codec: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "error_id": self.error_id,
            "timestamp": self.timestamp,
            "category": self.category.value,
            "severity": self.severity.value,
        }
        if self.path is not None:
            data["path"] = self.path
        if self.codec is not None:
            data["codec"] = self.codec
        if self.extra:
            data.update(self.extra)
        return data


def create_error_context(
    category: ErrorCategory,
    severity: ErrorSeverity = ErrorSeverity.MEDIUM,
    **fields: Any,
) -> ErrorContext:
    """Build an `ErrorContext`, routing known keys to their attributes."""
    path = fields.pop("path", None)
    codec = fields.pop("codec", None)
    return ErrorContext(
        category=category,
        severity=severity,
        path=str(path) if path is not None else None,
        codec=codec,
        extra=fields,
    )


class StagingSinkError(Exception):
    """Base error with category, severity and cause preservation."""

    default_category: ErrorCategory = ErrorCategory.IO
    default_severity: ErrorSeverity = ErrorSeverity.MEDIUM

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        severity: ErrorSeverity | None = None,
        error_context: ErrorContext | None = None,
        cause: BaseException | None = None,
        **fields: Any,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_context is None:
            error_context = create_error_context(
                category or self.default_category,
                severity or self.default_severity,
                **fields,
            )
        self.context = error_context
        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "context": self.context.to_dict(),
        }
        if self.__cause__ is not None:
            data["cause"] = f"{type(self.__cause__).__name__}: {self.__cause__}"
        return data


class StagingIOError(StagingSinkError):
    """The staging file or one of its streams could not be created, flushed
    or closed."""

    default_category = ErrorCategory.IO
    default_severity = ErrorSeverity.HIGH


class CodecResolutionError(StagingSinkError):
    """A codec identifier could not be turned into a working byte stream."""

    default_category = ErrorCategory.CODEC
    default_severity = ErrorSeverity.LOW


class CodecNotFoundError(CodecResolutionError):
    """No codec is registered or importable under the given identifier."""


class CodecLoadError(CodecResolutionError):
    """The codec was found but could not be loaded or instantiated."""


class WriteError(StagingSinkError):
    """A single record could not be written to the staging stream."""

    default_category = ErrorCategory.WRITE
    default_severity = ErrorSeverity.HIGH

    def __init__(self, message: str, *, record_index: int, **kwargs: Any) -> None:
        super().__init__(message, record_index=record_index, **kwargs)
        self.record_index = record_index


__all__ = [
    "ErrorCategory",
    "ErrorSeverity",
    "ErrorContext",
    "create_error_context",
    "StagingSinkError",
    "StagingIOError",
    "CodecResolutionError",
    "CodecNotFoundError",
    "CodecLoadError",
    "WriteError",
]
