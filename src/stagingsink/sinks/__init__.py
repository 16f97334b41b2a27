from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from .staging import StagedFile, StagingSink


@runtime_checkable
class BaseSink(Protocol):
    """Base async sink interface.

    Sinks accept records from an async producer and persist them somewhere
    the surrounding pipeline can pick them up. `write()` plus lifecycle hooks.
    """

    async def start(self) -> None:  # Optional lifecycle hook
        ...

    async def stop(self) -> Any:  # Optional lifecycle hook
        ...

    async def write(self, _record: Any) -> None:  # noqa: ARG002, D401
        """Write a single record to the sink destination."""
        ...


__all__ = [
    "BaseSink",
    "StagedFile",
    "StagingSink",
]
