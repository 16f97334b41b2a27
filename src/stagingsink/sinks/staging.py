from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..core import diagnostics
from ..core.errors import StagingIOError
from ..core.settings import Settings
from ..writer import StagingFileWriter, open_staging_writer


@dataclass(frozen=True)
class StagedFile:
    """A closed staging file ready to be handed off."""

    path: Path
    codec: str
    written_bytes: int
    written_count: int
    size: int


class StagingSink:
    """Async-friendly sink that stages records into rolling local files.

    - One `StagingFileWriter` is active at a time; blocking file I/O runs in a
      worker thread under a lock so concurrent producers are serialized
    - `rollover()` closes the active file, returns it as a `StagedFile` and
      opens a fresh one
    - Uploading or deleting finished files is left to the caller
    """

    name = "staging"
    _lock: asyncio.Lock

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        diagnostics_writer: diagnostics.DiagnosticWriter | None = None,
    ) -> None:
        self._settings = settings if settings is not None else Settings()
        self._diagnostics_writer = diagnostics_writer
        self._writer: StagingFileWriter | None = None
        self._lock = asyncio.Lock()

    @property
    def writer(self) -> StagingFileWriter | None:
        return self._writer

    async def start(self) -> None:
        async with self._lock:
            await self._ensure_writer()

    async def stop(self) -> StagedFile | None:
        """Close the active file, if any, and return it."""
        async with self._lock:
            return await self._finish()

    async def write(self, record: Any) -> None:
        async with self._lock:
            writer = await self._ensure_writer()
            await asyncio.to_thread(writer.write, record)

    async def should_roll(self) -> bool:
        """True once any configured rollover threshold has been reached."""
        limits = self._settings.rollover
        async with self._lock:
            writer = self._writer
            if writer is None:
                return False
            if limits.max_records and writer.written_count >= limits.max_records:
                return True
            if (
                limits.max_logical_bytes
                and writer.written_bytes >= limits.max_logical_bytes
            ):
                return True
            if limits.max_physical_bytes:
                size = await asyncio.to_thread(writer.size)
                return size >= limits.max_physical_bytes
            return False

    async def rollover(self) -> StagedFile | None:
        """Close the active file and open a new one."""
        async with self._lock:
            staged = await self._finish()
            await self._ensure_writer()
            return staged

    async def _ensure_writer(self) -> StagingFileWriter:
        if self._writer is None:
            self._writer = await asyncio.to_thread(
                open_staging_writer,
                self._settings,
                diagnostics_writer=self._diagnostics_writer,
            )
        return self._writer

    async def _finish(self) -> StagedFile | None:
        writer = self._writer
        if writer is None:
            return None

        def _close() -> StagedFile:
            writer.close()
            try:
                size = writer.path.stat().st_size
            except OSError as exc:
                raise StagingIOError(
                    "Failed to stat staged file",
                    path=writer.path,
                    codec=writer.codec,
                    cause=exc,
                ) from exc
            return StagedFile(
                path=writer.path,
                codec=writer.resolved_codec,
                written_bytes=writer.written_bytes,
                written_count=writer.written_count,
                size=size,
            )

        # A failed close keeps the writer so a retry can still hand it off
        staged = await asyncio.to_thread(_close)
        self._writer = None
        return staged


__all__ = ["StagedFile", "StagingSink"]
