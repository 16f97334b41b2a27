from __future__ import annotations

import bz2
import gzip
import io
import lzma
import zlib
from typing import BinaryIO, cast


def buffered_codec(raw: BinaryIO, *, level: int | None = None) -> BinaryIO:
    """No compression; only buffering over the raw file."""
    return cast(BinaryIO, io.BufferedWriter(cast(io.RawIOBase, raw)))


def gzip_codec(raw: BinaryIO, *, level: int | None = None) -> BinaryIO:
    compresslevel = 9 if level is None else level
    return cast(
        BinaryIO, gzip.GzipFile(fileobj=raw, mode="wb", compresslevel=compresslevel)
    )


def bz2_codec(raw: BinaryIO, *, level: int | None = None) -> BinaryIO:
    # bzip2 has no level 0
    compresslevel = 9 if level is None else max(1, level)
    return cast(BinaryIO, bz2.BZ2File(raw, mode="wb", compresslevel=compresslevel))


def lzma_codec(raw: BinaryIO, *, level: int | None = None) -> BinaryIO:
    return cast(BinaryIO, lzma.LZMAFile(raw, mode="wb", preset=level))


class DeflateWriter(io.BufferedIOBase):
    """Write-only zlib stream over a binary file object.

    Produces the zlib container format (header + deflate + adler32), i.e. what
    a plain ``zlib.decompress`` accepts. ``flush()`` performs a sync flush so
    the bytes on disk are decodable up to the last flushed record. Closing the
    stream writes the trailer but leaves ``fileobj`` open, like ``GzipFile``.
    """

    def __init__(self, fileobj: BinaryIO, level: int = zlib.Z_DEFAULT_COMPRESSION):
        super().__init__()
        self.fileobj = fileobj
        self._compressor = zlib.compressobj(level)
        self._finished = False

    def writable(self) -> bool:
        return True

    def write(self, data) -> int:  # type: ignore[no-untyped-def, override]
        if self.closed or self._finished:
            raise ValueError("write to closed DeflateWriter")
        view = memoryview(data)
        compressed = self._compressor.compress(view)
        if compressed:
            self.fileobj.write(compressed)
        return view.nbytes

    def flush(self) -> None:
        # IOBase.close() calls flush() again after the trailer is written
        if self.closed or self._finished:
            return
        self.fileobj.write(self._compressor.flush(zlib.Z_SYNC_FLUSH))
        self.fileobj.flush()

    def close(self) -> None:
        if self.closed:
            return
        try:
            if not self._finished:
                self._finished = True
                self.fileobj.write(self._compressor.flush(zlib.Z_FINISH))
                self.fileobj.flush()
        finally:
            super().close()


def zlib_codec(raw: BinaryIO, *, level: int | None = None) -> BinaryIO:
    return cast(
        BinaryIO,
        DeflateWriter(raw, zlib.Z_DEFAULT_COMPRESSION if level is None else level),
    )


def register_builtin_codecs() -> None:
    from .loader import register_codec

    register_codec(
        "buffered",
        buffered_codec,
        suffix=".tmp",
        accepts_level=True,
        aliases=("none", "identity", "plain"),
    )
    register_codec(
        "gzip",
        gzip_codec,
        suffix=".gz",
        accepts_level=True,
        aliases=("gz",),
    )
    register_codec(
        "bz2", bz2_codec, suffix=".bz2", aliases=("bzip2",), accepts_level=True
    )
    register_codec(
        "lzma", lzma_codec, suffix=".xz", aliases=("xz",), accepts_level=True
    )
    register_codec(
        "zlib",
        zlib_codec,
        suffix=".zz",
        accepts_level=True,
        aliases=("deflate",),
    )
