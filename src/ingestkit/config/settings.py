"""
Typed configuration models using Pydantic.

Defaults applied to descriptors built from bare paths, inference bounds
for delimited text, and logging options all live here.
"""

import logging

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TextDefaults(BaseModel):
    """Defaults for delimited text sources and their type inference."""

    model_config = ConfigDict(frozen=True)

    delimiter: str = Field(default=",", description="Field delimiter")
    has_header: bool = Field(default=True, description="First row holds column names")
    quote_char: str | None = Field(default='"', description="Quote character, None disables quoting")
    escape_char: str | None = Field(default="\\", description="Escape character")
    encoding: str = Field(default="utf-8", description="Text encoding of source files")
    sample_rows: int = Field(
        default=100_000, ge=1, description="Leading rows used for schema inference"
    )
    max_coercion_attempts: int = Field(
        default=256, ge=1, description="Last-resort bound on coercion retries"
    )

    @field_validator("delimiter")
    @classmethod
    def validate_delimiter(cls, v: str) -> str:
        """Ensure the delimiter is a single character."""
        if len(v) != 1:
            msg = f"delimiter must be a single character, got: {v!r}"
            raise ValueError(msg)
        return v

    @field_validator("quote_char", "escape_char")
    @classmethod
    def validate_single_char(cls, v: str | None) -> str | None:
        """Ensure quote and escape characters are single characters."""
        if v is not None and len(v) != 1:
            msg = f"must be a single character, got: {v!r}"
            raise ValueError(msg)
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(default="INFO", description="Log level name")
    json_output: bool = Field(default=False, description="Render logs as JSON")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Ensure the level is a standard logging level name."""
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            msg = f"Unknown log level: {v!r}"
            raise ValueError(msg)
        return level


class EngineConfig(BaseModel):
    """Complete engine configuration."""

    model_config = ConfigDict(frozen=True)

    text: TextDefaults = Field(default_factory=TextDefaults)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
