"""End-to-end staging lifecycle as driven by an external orchestrator."""

from __future__ import annotations

import gzip
from pathlib import Path
from typing import Any

import pytest

from stagingsink import (
    Settings,
    StagingFileWriter,
    StagingSink,
    WriterSettings,
    list_available_codecs,
    register_codec,
)
from stagingsink.codecs import loader

pytestmark = pytest.mark.integration


def test_orchestrator_rolls_over_by_physical_size(tmp_path: Path) -> None:
    settings = WriterSettings(temp_dir=tmp_path, codec="gzip")
    handed_off: list[Path] = []
    writer = StagingFileWriter(settings=settings)

    for i in range(2_000):
        writer.write({"offset": i, "payload": f"value-{i * 7919 % 10007}"})
        if i % 100 == 99 and writer.size() >= 4_096:
            writer.close()
            handed_off.append(writer.path)
            writer = StagingFileWriter(settings=settings)
    writer.close()
    handed_off.append(writer.path)

    assert len(handed_off) > 1
    assert len(set(handed_off)) == len(handed_off)
    offsets: list[int] = []
    for path in handed_off:
        with gzip.open(path, "rt", encoding="utf-8") as fh:
            for line in fh:
                offsets.append(int(line.split(",")[0].split(":")[1]))
    assert offsets == list(range(2_000))


def test_discarded_batch_leaves_no_files(tmp_path: Path) -> None:
    settings = WriterSettings(temp_dir=tmp_path)
    for _ in range(5):
        writer = StagingFileWriter("xz", settings=settings)
        writer.write("transient")
        writer.close()
        writer.delete()

    assert list(tmp_path.iterdir()) == []


def test_third_party_codec_registered_at_runtime(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(loader, "BUILTIN_CODECS", dict(loader.BUILTIN_CODECS))
    monkeypatch.setattr(loader, "BUILTIN_ALIASES", dict(loader.BUILTIN_ALIASES))

    def fast_gzip(raw: Any) -> Any:
        return gzip.GzipFile(fileobj=raw, mode="wb", compresslevel=1)

    register_codec("fast-gzip", fast_gzip, suffix=".fast.gz")
    assert "fast_gzip" in list_available_codecs()

    writer = StagingFileWriter(
        "fast-gzip", settings=WriterSettings(temp_dir=tmp_path)
    )
    writer.write("quick")
    writer.close()

    assert writer.path.name.endswith(".fast.gz")
    assert gzip.decompress(writer.path.read_bytes()) == b"quick\n"


@pytest.mark.asyncio
async def test_async_sink_hands_off_files(tmp_path: Path) -> None:
    settings = Settings(writer=WriterSettings(temp_dir=tmp_path, codec="zlib"))
    sink = StagingSink(settings)
    staged = []
    await sink.start()
    for batch in range(3):
        for i in range(10):
            await sink.write(f"{batch}:{i}")
        staged.append(await sink.rollover())
    await sink.stop()

    assert [s.written_count for s in staged] == [10, 10, 10]
    assert all(s.path.suffix == ".zz" for s in staged)
    # rollover() opened a fresh file that stop() closed empty
    assert len(list(tmp_path.iterdir())) == 4
