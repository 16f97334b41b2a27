"""
Codec registry: maps a codec identifier to a byte-stream factory.

A codec factory is any callable taking exactly one positional argument, a
writable binary stream, and returning a writable binary stream that wraps it
(decorator style, e.g. a compressor). Identifiers are resolved in this order:

1. built-in registry (after alias mapping and name normalization)
2. ``stagingsink.codecs`` entry points from installed distributions
3. a dotted import path, ``"package.module:attr"`` or ``"package.module.attr"``

Built-ins are preferred over entry points when names collide.
"""

from __future__ import annotations

import functools
import importlib
import importlib.metadata
from dataclasses import dataclass
from typing import Any, BinaryIO, Callable, Iterable

from ..core import diagnostics
from ..core.errors import CodecLoadError, CodecNotFoundError

CodecFactory = Callable[..., BinaryIO]

ENTRY_POINT_GROUP = "stagingsink.codecs"
DEFAULT_CODEC = "buffered"


@dataclass(frozen=True)
class CodecSpec:
    """A resolved codec: its canonical name, factory and staging file suffix."""

    name: str
    factory: CodecFactory
    suffix: str = ".tmp"
    accepts_level: bool = False

    def bind(self, level: int | None = None) -> Callable[[BinaryIO], BinaryIO]:
        """Return a single-argument factory with the compression level applied."""
        if level is not None and self.accepts_level:
            return functools.partial(self.factory, level=level)
        return self.factory


def _normalize_codec_name(name: str) -> str:
    """Normalize codec names to a canonical underscore/lower format."""
    return name.strip().replace("-", "_").lower()


# Built-in codec registry (name -> spec) and aliases (alias -> canonical name)
BUILTIN_CODECS: dict[str, CodecSpec] = {}
BUILTIN_ALIASES: dict[str, str] = {}


def register_codec(
    name: str,
    factory: CodecFactory,
    *,
    suffix: str | None = None,
    aliases: Iterable[str] | None = None,
    accepts_level: bool = False,
) -> CodecSpec:
    """Register a codec factory under `name` plus optional aliases.

    Factories registered with ``accepts_level=True`` also receive the
    configured compression level as a keyword-only ``level`` argument; all
    others are called with the stream only.
    """
    canonical = _normalize_codec_name(name)
    if not canonical:
        raise ValueError("codec name must not be empty")
    spec = CodecSpec(
        name=canonical,
        factory=factory,
        suffix=suffix or ".tmp",
        accepts_level=accepts_level,
    )
    BUILTIN_CODECS[canonical] = spec
    for alias in aliases or ():
        BUILTIN_ALIASES[_normalize_codec_name(alias)] = canonical
    return spec


def resolve_codec(name: str | None) -> CodecSpec:
    """Resolve a codec identifier to a `CodecSpec`.

    Raises `CodecNotFoundError` when nothing matches and `CodecLoadError` when
    an entry point or import path exists but cannot be loaded.
    """
    if name is None or not name.strip():
        name = DEFAULT_CODEC
    canonical = _normalize_codec_name(name)
    target = BUILTIN_ALIASES.get(canonical, canonical)
    if target in BUILTIN_CODECS:
        return BUILTIN_CODECS[target]

    for ep in _select_entry_points(ENTRY_POINT_GROUP):
        if _normalize_codec_name(ep.name) == canonical:
            try:
                factory = ep.load()
            except Exception as exc:
                raise CodecLoadError(
                    f"Failed to load codec entry point '{ep.name}': {exc}",
                    codec=name,
                    cause=exc,
                ) from exc
            return _spec_for_object(canonical, factory, name)

    if "." in name or ":" in name:
        factory = _import_object(name.strip())
        return _spec_for_object(name.strip(), factory, name)

    raise CodecNotFoundError(f"Codec '{name}' not found", codec=name)


def list_available_codecs() -> list[str]:
    """List codec names (built-ins, aliases and entry points)."""
    names: set[str] = set(BUILTIN_CODECS)
    names.update(BUILTIN_ALIASES)
    for ep in _select_entry_points(ENTRY_POINT_GROUP):
        names.add(_normalize_codec_name(ep.name))
    return sorted(names)


def _spec_for_object(canonical: str, obj: Any, requested: str) -> CodecSpec:
    if not callable(obj):
        raise CodecLoadError(
            f"Codec '{requested}' resolves to a non-callable {type(obj).__name__}",
            codec=requested,
        )
    suffix = getattr(obj, "staging_suffix", None)
    return CodecSpec(
        name=canonical,
        factory=obj,
        suffix=suffix if isinstance(suffix, str) and suffix else ".tmp",
    )


def _import_object(path: str) -> Any:
    """Import ``module:attr`` or the longest importable prefix of ``a.b.c``."""
    if ":" in path:
        module_name, _, attr_path = path.partition(":")
        candidates = [(module_name, attr_path)]
    else:
        parts = path.split(".")
        candidates = [
            (".".join(parts[:i]), ".".join(parts[i:]))
            for i in range(len(parts) - 1, 0, -1)
        ]

    last_exc: Exception | None = None
    for module_name, attr_path in candidates:
        if not module_name or not attr_path:
            continue
        try:
            obj: Any = importlib.import_module(module_name)
        except ImportError as exc:
            last_exc = exc
            continue
        try:
            for attr in attr_path.split("."):
                obj = getattr(obj, attr)
        except AttributeError as exc:
            raise CodecNotFoundError(
                f"Codec '{path}' not found: {exc}", codec=path, cause=exc
            ) from exc
        return obj

    raise CodecNotFoundError(
        f"Codec '{path}' not found: no importable module", codec=path, cause=last_exc
    )


def _select_entry_points(group: str) -> list[Any]:
    """Support both modern and legacy entry_points APIs."""
    try:
        eps = importlib.metadata.entry_points()
        if hasattr(eps, "select"):
            return list(eps.select(group=group))
        return list(eps.get(group, []))
    except Exception as exc:
        diagnostics.debug(
            "codecs",
            "entry point discovery failed",
            group=group,
            reason=type(exc).__name__,
            detail=str(exc),
        )
        return []


__all__ = [
    "CodecFactory",
    "CodecSpec",
    "DEFAULT_CODEC",
    "ENTRY_POINT_GROUP",
    "register_codec",
    "resolve_codec",
    "list_available_codecs",
]
