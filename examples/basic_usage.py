"""
Basic usage example for stagingsink.

Stages a stream of records into gzip-compressed temporary files, rolling over
once a file reaches a physical size threshold, then "uploads" (here: prints)
each finished file and deletes it.
"""

from __future__ import annotations

from stagingsink import StagingFileWriter, WriterSettings

MAX_FILE_BYTES = 64 * 1024


def hand_off(writer: StagingFileWriter) -> None:
    print(
        f"staged {writer.written_count} records "
        f"({writer.written_bytes} chars, {writer.path.stat().st_size} bytes) "
        f"-> {writer.path}"
    )
    writer.delete()


def main() -> None:
    settings = WriterSettings(codec="gzip")
    writer = StagingFileWriter(settings=settings)
    for i in range(50_000):
        writer.write({"offset": i, "value": i * i})
        if writer.written_count % 1_000 == 0 and writer.size() >= MAX_FILE_BYTES:
            writer.close()
            hand_off(writer)
            writer = StagingFileWriter(settings=settings)
    writer.close()
    hand_off(writer)


if __name__ == "__main__":
    main()
