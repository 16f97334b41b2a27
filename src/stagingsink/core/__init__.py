"""
Core building blocks shared by the writer and codec registry.
"""

from .errors import (
    CodecLoadError,
    CodecNotFoundError,
    CodecResolutionError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    StagingIOError,
    StagingSinkError,
    WriteError,
    create_error_context,
)
from .settings import CoreSettings, RolloverSettings, Settings, WriterSettings

__all__ = [
    # Errors
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
    # Settings
    "Settings",
    "CoreSettings",
    "WriterSettings",
    "RolloverSettings",
]
