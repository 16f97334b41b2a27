"""
Local staging file writer.

`StagingFileWriter` buffers records into a uniquely named temporary file so an
external pipeline can later upload or otherwise consume it. Each record is
converted with ``str()``, written as one UTF-8 line through an optional codec
(e.g. gzip), and counted, so callers can roll files over by record count,
logical size (characters written) or physical size (bytes on disk).

Lifecycle::

    writer = StagingFileWriter("gzip")
    for record in batch:
        writer.write(record)
    if writer.size() >= limit:
        writer.close()
        hand_off(writer.path)   # or writer.delete()

One writer belongs to one producer; there is no internal locking.
"""

from __future__ import annotations

import contextlib
import io
import os
import tempfile
from pathlib import Path
from typing import Any

from .codecs import resolve_codec
from .codecs.loader import DEFAULT_CODEC, CodecSpec
from .core import diagnostics
from .core.errors import (
    CodecLoadError,
    CodecResolutionError,
    StagingIOError,
    WriteError,
)
from .core.settings import Settings, WriterSettings

ENCODING = "utf-8"


class StagingFileWriter:
    """Writes records line by line to a temporary staging file.

    Args:
        codec: Codec identifier (see `stagingsink.codecs`). Defaults to
            ``settings.codec``. An identifier that cannot be resolved or
            instantiated never fails construction: a warning diagnostic is
            emitted and a plain buffered stream is used instead.
        settings: Writer settings; read from the environment when omitted.
        diagnostics_writer: Optional callable receiving this writer's
            diagnostic payloads instead of the process-wide diagnostics sink.

    Raises:
        StagingIOError: the staging file or its stream could not be created.
    """

    def __init__(
        self,
        codec: str | None = None,
        *,
        settings: WriterSettings | None = None,
        diagnostics_writer: diagnostics.DiagnosticWriter | None = None,
    ) -> None:
        self._settings = settings if settings is not None else Settings().writer
        self._diagnostics_writer = diagnostics_writer
        self.codec: str = codec if codec is not None else self._settings.codec
        self.codec_error: CodecResolutionError | None = None
        self._written_bytes = 0
        self._written_count = 0
        self._write_errors: list[WriteError] = []
        self._resources = contextlib.ExitStack()

        spec = self._resolve_codec()
        self._path = self._create_file(spec.suffix if spec else ".tmp")
        try:
            self._text = self._open_text_stream(spec)
        except Exception:
            self._resources.close()
            self._discard_file()
            raise
        self.resolved_codec: str = (
            spec.name if spec and self.codec_error is None else DEFAULT_CODEC
        )

    # Construction helpers

    def _resolve_codec(self) -> CodecSpec | None:
        try:
            return resolve_codec(self.codec)
        except Exception as exc:
            self._codec_failed(exc)
            return None

    def _create_file(self, suffix: str) -> Path:
        try:
            fd, name = tempfile.mkstemp(
                prefix=self._settings.temp_prefix,
                suffix=suffix,
                dir=self._settings.temp_dir,
            )
        except OSError as exc:
            raise StagingIOError(
                "Failed to create staging file",
                codec=self.codec,
                cause=exc,
            ) from exc
        os.close(fd)
        return Path(name).absolute()

    def _open_text_stream(self, spec: CodecSpec | None) -> io.TextIOWrapper:
        if spec is not None:
            layers = contextlib.ExitStack()
            raw = self._open_raw()
            layers.callback(raw.close)
            try:
                stream = spec.bind(self._settings.compression_level)(raw)
                if callable(getattr(stream, "close", None)):
                    layers.callback(stream.close)
                text = self._wrap_text(stream)
            except Exception as exc:
                self._codec_failed(exc)
                self._release_abandoned(layers)
            else:
                layers.callback(text.close)
                self._resources.enter_context(layers.pop_all())
                return text

        try:
            buffered = open(self._path, "wb")
        except OSError as exc:
            raise StagingIOError(
                "Failed to open staging file",
                path=self._path,
                codec=self.codec,
                cause=exc,
            ) from exc
        self._resources.callback(buffered.close)
        text = self._wrap_text(buffered)
        self._resources.callback(text.close)
        return text

    def _open_raw(self) -> io.FileIO:
        try:
            return io.FileIO(self._path, "wb")
        except OSError as exc:
            raise StagingIOError(
                "Failed to open staging file",
                path=self._path,
                codec=self.codec,
                cause=exc,
            ) from exc

    def _wrap_text(self, stream: Any) -> io.TextIOWrapper:
        if isinstance(stream, io.TextIOBase):
            raise CodecLoadError(
                f"Codec stream {type(stream).__name__} is a text stream",
                codec=self.codec,
            )
        for attr in ("write", "flush"):
            if not callable(getattr(stream, attr, None)):
                raise CodecLoadError(
                    f"Codec stream {type(stream).__name__} has no {attr}()",
                    codec=self.codec,
                )
        writable = getattr(stream, "writable", None)
        if callable(writable) and not writable():
            raise CodecLoadError(
                f"Codec stream {type(stream).__name__} is not writable",
                codec=self.codec,
            )
        return io.TextIOWrapper(
            stream,
            encoding=ENCODING,
            errors=self._settings.encoding_errors,
            newline="",
            write_through=False,
        )

    def _codec_failed(self, exc: Exception) -> None:
        if isinstance(exc, CodecResolutionError):
            error = exc
        else:
            error = CodecLoadError(
                f"Creating codec '{self.codec}' failed: {exc}",
                codec=self.codec,
                cause=exc,
            )
        self.codec_error = error
        diagnostics.warn(
            "writer",
            "codec unavailable, falling back to buffered stream",
            writer=self._diagnostics_writer,
            codec=self.codec,
            reason=type(exc).__name__,
            detail=str(exc),
        )

    def _release_abandoned(self, layers: contextlib.ExitStack) -> None:
        try:
            layers.close()
        except Exception as exc:
            diagnostics.debug(
                "writer",
                "error releasing abandoned codec stream",
                writer=self._diagnostics_writer,
                codec=self.codec,
                reason=type(exc).__name__,
                detail=str(exc),
            )

    def _discard_file(self) -> None:
        with contextlib.suppress(OSError):
            self._path.unlink()

    # Public API

    @property
    def path(self) -> Path:
        """Absolute path of the staging file."""
        return self._path

    @property
    def written_bytes(self) -> int:
        """Characters written so far, excluding line terminators."""
        return self._written_bytes

    @property
    def written_count(self) -> int:
        return self._written_count

    @property
    def write_errors(self) -> tuple[WriteError, ...]:
        """Failures observed by `write`, oldest first."""
        return tuple(self._write_errors)

    def raise_for_write_errors(self) -> None:
        """Raise the first recorded `WriteError`, if any."""
        if self._write_errors:
            raise self._write_errors[0]

    def write(self, record: Any) -> None:
        """Append ``str(record)`` as one line.

        A stream failure does not count the record; it is recorded on
        `write_errors` and only raised when ``raise_on_write_error`` is set.
        """
        text = str(record)
        try:
            self._text.write(text + self._settings.line_terminator)
        except (OSError, UnicodeError) as exc:
            self._write_failed(exc)
            return
        self._written_bytes += len(text)
        self._written_count += 1

    def _write_failed(self, exc: Exception) -> None:
        index = self._written_count + len(self._write_errors)
        error = WriteError(
            f"Failed to write record {index} to staging file",
            record_index=index,
            path=self._path,
            codec=self.codec,
            cause=exc,
        )
        self._write_errors.append(error)
        diagnostics.warn(
            "writer",
            "record write failed",
            writer=self._diagnostics_writer,
            path=str(self._path),
            record_index=index,
            reason=type(exc).__name__,
            detail=str(exc),
        )
        if self._settings.raise_on_write_error:
            raise error from exc

    def flush(self) -> None:
        """Push buffered text and codec output down to the file descriptor.

        Only `OSError` is translated. Flushing a closed writer raises
        `ValueError` like any closed `io` stream.
        """
        try:
            self._text.flush()
        except OSError as exc:
            raise StagingIOError(
                "Failed to flush staging file",
                path=self._path,
                codec=self.codec,
                cause=exc,
            ) from exc

    def size(self) -> int:
        """Flush, then return the staging file's size on disk in bytes."""
        self.flush()
        try:
            return self._path.stat().st_size
        except OSError as exc:
            raise StagingIOError(
                "Failed to stat staging file",
                path=self._path,
                codec=self.codec,
                cause=exc,
            ) from exc

    def close(self) -> None:
        """Flush and release the text, codec and file layers, newest first.

        Every layer is released even when an earlier one fails. When several
        layers fail, the last failure is raised as `StagingIOError` and the
        earlier ones stay chained on its ``__context__``. Closing an already
        closed writer does nothing.
        """
        try:
            self._resources.close()
        except Exception as exc:
            raise StagingIOError(
                "Failed to close staging file",
                path=self._path,
                codec=self.codec,
                cause=exc,
            ) from exc

    def delete(self) -> None:
        """Remove the staging file; failures are ignored."""
        try:
            self._path.unlink()
        except OSError as exc:
            diagnostics.debug(
                "writer",
                "staging file delete failed",
                writer=self._diagnostics_writer,
                path=str(self._path),
                reason=type(exc).__name__,
                detail=str(exc),
            )

    def __enter__(self) -> StagingFileWriter:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[no-untyped-def]
        self.close()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(path={str(self._path)!r}, "
            f"codec={self.resolved_codec!r}, count={self._written_count})"
        )


def open_staging_writer(
    settings: Settings | None = None,
    *,
    diagnostics_writer: diagnostics.DiagnosticWriter | None = None,
) -> StagingFileWriter:
    """Create a writer from top-level settings."""
    settings = settings if settings is not None else Settings()
    return StagingFileWriter(
        settings.writer.codec,
        settings=settings.writer,
        diagnostics_writer=diagnostics_writer,
    )


__all__ = ["StagingFileWriter", "open_staging_writer", "ENCODING"]
