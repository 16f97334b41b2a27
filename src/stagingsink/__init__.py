"""
stagingsink - local staging files for record pipelines.

Records are buffered into a uniquely named temporary file, optionally through
a pluggable compression codec, with exact record and size accounting so an
external orchestrator can decide when to roll over and upload.
"""

from ._version import __version__
from .codecs import CodecSpec, list_available_codecs, register_codec, resolve_codec
from .core.errors import (
    CodecLoadError,
    CodecNotFoundError,
    CodecResolutionError,
    StagingIOError,
    StagingSinkError,
    WriteError,
)
from .core.settings import Settings, WriterSettings
from .sinks import StagedFile, StagingSink
from .writer import StagingFileWriter, open_staging_writer

__all__ = [
    # Writer
    "StagingFileWriter",
    "open_staging_writer",
    # Codecs
    "CodecSpec",
    "register_codec",
    "resolve_codec",
    "list_available_codecs",
    # Async adapter
    "StagingSink",
    "StagedFile",
    # Settings
    "Settings",
    "WriterSettings",
    # Errors
    "StagingSinkError",
    "StagingIOError",
    "CodecResolutionError",
    "CodecNotFoundError",
    "CodecLoadError",
    "WriteError",
    "__version__",
]
