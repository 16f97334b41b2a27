from __future__ import annotations

import io
import types
from typing import Any

import pytest

from stagingsink.codecs import loader
from stagingsink.core.errors import (
    CodecLoadError,
    CodecNotFoundError,
    CodecResolutionError,
)


def _dummy_factory(raw: Any) -> Any:
    return io.BufferedWriter(raw)


def _fake_entry_point(name: str, target: Any) -> Any:
    ep = types.SimpleNamespace()
    ep.name = name
    ep.load = lambda: target
    return ep


def _fake_entry_points(*eps: Any) -> Any:
    class _FakeEntryPoints:
        def select(self, group: str):  # pragma: no cover - py>=3.10 path
            return list(eps) if group == loader.ENTRY_POINT_GROUP else []

    return lambda: _FakeEntryPoints()


@pytest.fixture(autouse=True)
def _isolated_registry(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(loader, "BUILTIN_CODECS", dict(loader.BUILTIN_CODECS))
    monkeypatch.setattr(loader, "BUILTIN_ALIASES", dict(loader.BUILTIN_ALIASES))


def test_normalize_codec_name() -> None:
    assert loader._normalize_codec_name("Snappy-Framed") == "snappy_framed"
    assert loader._normalize_codec_name(" gzip ") == "gzip"
    assert loader._normalize_codec_name("BZ2") == "bz2"


def test_register_and_resolve_with_alias() -> None:
    spec = loader.register_codec(
        "my-codec", _dummy_factory, suffix=".my", aliases=["mine"]
    )

    assert spec.name == "my_codec"
    assert loader.resolve_codec("my-codec") is spec
    assert loader.resolve_codec("MY_CODEC") is spec
    assert loader.resolve_codec("mine") is spec
    assert spec.suffix == ".my"


def test_register_rejects_empty_name() -> None:
    with pytest.raises(ValueError):
        loader.register_codec("  ", _dummy_factory)


@pytest.mark.parametrize(
    ("name", "expected", "suffix"),
    [
        ("gzip", "gzip", ".gz"),
        ("gz", "gzip", ".gz"),
        ("bzip2", "bz2", ".bz2"),
        ("xz", "lzma", ".xz"),
        ("deflate", "zlib", ".zz"),
        ("none", "buffered", ".tmp"),
    ],
)
def test_builtin_codecs_and_aliases(name: str, expected: str, suffix: str) -> None:
    spec = loader.resolve_codec(name)
    assert spec.name == expected
    assert spec.suffix == suffix


@pytest.mark.parametrize("name", [None, "", "   "])
def test_empty_identifier_resolves_to_default(name: str | None) -> None:
    assert loader.resolve_codec(name).name == loader.DEFAULT_CODEC


def test_resolve_not_found(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        loader.importlib.metadata, "entry_points", _fake_entry_points()
    )
    with pytest.raises(CodecNotFoundError) as exc_info:
        loader.resolve_codec("missing")
    assert isinstance(exc_info.value, CodecResolutionError)
    assert exc_info.value.context.codec == "missing"


def test_entry_point_discovery(monkeypatch: pytest.MonkeyPatch) -> None:
    fake_ep = _fake_entry_point("Snappy", _dummy_factory)
    monkeypatch.setattr(
        loader.importlib.metadata,
        "entry_points",
        _fake_entry_points(fake_ep),
    )

    spec = loader.resolve_codec("snappy")
    assert spec.factory is _dummy_factory
    assert spec.name == "snappy"
    assert spec.accepts_level is False


def test_entry_point_load_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    ep = types.SimpleNamespace(name="broken")

    def _boom() -> Any:
        raise ImportError("missing extension module")

    ep.load = _boom
    monkeypatch.setattr(
        loader.importlib.metadata,
        "entry_points",
        _fake_entry_points(ep),
    )

    with pytest.raises(CodecLoadError) as exc_info:
        loader.resolve_codec("broken")
    assert isinstance(exc_info.value.__cause__, ImportError)


def test_builtin_preferred_over_entry_point(monkeypatch: pytest.MonkeyPatch) -> None:
    fake_ep = _fake_entry_point("gzip", _dummy_factory)
    monkeypatch.setattr(
        loader.importlib.metadata,
        "entry_points",
        _fake_entry_points(fake_ep),
    )

    assert loader.resolve_codec("gzip").factory is not _dummy_factory


def test_entry_point_discovery_errors_are_contained(
    monkeypatch: pytest.MonkeyPatch, capture_diagnostics: list[dict[str, Any]]
) -> None:
    def _broken() -> Any:
        raise RuntimeError("metadata unavailable")

    monkeypatch.setattr(loader.importlib.metadata, "entry_points", _broken)

    assert "gzip" in loader.list_available_codecs()
    assert capture_diagnostics[0]["message"] == "entry point discovery failed"


def test_dotted_import_paths() -> None:
    assert loader.resolve_codec("io.BufferedWriter").factory is io.BufferedWriter
    assert loader.resolve_codec("io:BufferedWriter").factory is io.BufferedWriter


def test_dotted_import_path_errors() -> None:
    with pytest.raises(CodecNotFoundError):
        loader.resolve_codec("no_such_module_xyz.Factory")
    with pytest.raises(CodecNotFoundError):
        loader.resolve_codec("io.NoSuchWriter")
    with pytest.raises(CodecLoadError):
        loader.resolve_codec("io.DEFAULT_BUFFER_SIZE")


def test_staging_suffix_attribute_is_honored() -> None:
    def factory(raw: Any) -> Any:
        return raw

    factory.staging_suffix = ".custom"  # type: ignore[attr-defined]
    spec = loader._spec_for_object("custom", factory, "custom")
    assert spec.suffix == ".custom"


def test_bind_applies_level_only_when_accepted() -> None:
    calls: list[dict[str, Any]] = []

    def factory(raw: Any, **kwargs: Any) -> Any:
        calls.append(kwargs)
        return raw

    leveled = loader.register_codec("leveled", factory, accepts_level=True)
    plain = loader.register_codec("plain_factory", factory)

    leveled.bind(3)(object())
    leveled.bind(None)(object())
    plain.bind(3)(object())

    assert calls == [{"level": 3}, {}, {}]


def test_list_available_includes_builtins_aliases_and_entry_points(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    fake_ep = _fake_entry_point("ep-codec", _dummy_factory)
    monkeypatch.setattr(
        loader.importlib.metadata,
        "entry_points",
        _fake_entry_points(fake_ep),
    )

    names = loader.list_available_codecs()
    assert "gzip" in names
    assert "gz" in names  # alias exposure for UX
    assert "ep_codec" in names
    assert names == sorted(names)
