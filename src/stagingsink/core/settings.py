"""
Configuration models for stagingsink using Pydantic v2 Settings.

Values can be supplied directly or through environment variables, e.g.
``STAGINGSINK_WRITER__CODEC=gzip`` or
``STAGINGSINK_ROLLOVER__MAX_RECORDS=10000``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (  # type: ignore[import-not-found]
    BaseSettings,
    SettingsConfigDict,
)

DEFAULT_TEMP_PREFIX = "stagingsink-"


class CoreSettings(BaseModel):
    """Package-wide behavior toggles."""

    internal_logging_enabled: bool = Field(
        default=True,
        description=("Emit DEBUG/WARN diagnostics for internal, non-fatal errors"),
    )


class WriterSettings(BaseModel):
    """Settings consumed by `StagingFileWriter`."""

    codec: str = Field(
        default="buffered",
        description=("Codec identifier wrapped around the raw staging file"),
    )
    temp_prefix: str = Field(
        default=DEFAULT_TEMP_PREFIX,
        description=("Filename prefix for staging files"),
    )
    temp_dir: Path | None = Field(
        default=None,
        description=("Directory for staging files; platform temp dir when unset"),
    )
    line_terminator: Literal["\n", "\r\n"] = Field(
        default="\n",
        description=("Separator appended after every record"),
    )
    encoding_errors: Literal["strict", "replace", "backslashreplace"] = Field(
        default="replace",
        description=("UTF-8 encoder error handler for unencodable characters"),
    )
    compression_level: int | None = Field(
        default=None,
        ge=0,
        le=9,
        description=("Compression level passed to built-in codecs that accept one"),
    )
    raise_on_write_error: bool = Field(
        default=False,
        description=(
            "If True, a failed record write raises WriteError instead of only "
            "being recorded on the writer's error channel"
        ),
    )

    @field_validator("temp_prefix")
    @classmethod
    def _ensure_prefix_non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("temp_prefix must not be empty")
        if "/" in value or "\\" in value:
            raise ValueError("temp_prefix must not contain path separators")
        return value

    @field_validator("temp_dir")
    @classmethod
    def _ensure_temp_dir_exists(cls, value: Path | None) -> Path | None:
        if value is not None and not value.is_dir():
            raise ValueError(f"temp_dir does not exist: {value}")
        return value


class RolloverSettings(BaseModel):
    """Thresholds an orchestrator can use to decide when to roll a file over."""

    max_logical_bytes: int | None = Field(
        default=None,
        ge=1,
        description=("Roll over once this many characters have been written"),
    )
    max_physical_bytes: int | None = Field(
        default=None,
        ge=1,
        description=("Roll over once the staging file reaches this size on disk"),
    )
    max_records: int | None = Field(
        default=None,
        ge=1,
        description=("Roll over once this many records have been written"),
    )


class Settings(BaseSettings):
    """Top-level configuration model."""

    core: CoreSettings = Field(default_factory=CoreSettings)
    writer: WriterSettings = Field(default_factory=WriterSettings)
    rollover: RolloverSettings = Field(default_factory=RolloverSettings)

    model_config = SettingsConfigDict(
        env_prefix="STAGINGSINK_",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    def to_dict(self) -> dict[str, object]:
        from typing import cast

        return cast(
            dict[str, object],
            self.model_dump(mode="json", exclude_none=True),
        )
