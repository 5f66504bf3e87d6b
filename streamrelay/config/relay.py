"""Streaming relay and page configuration settings."""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator


def _default_headers() -> dict[str, str]:
    return {
        "cache-control": "no-cache",
        # Keep reverse proxies such as nginx from buffering the stream
        "x-accel-buffering": "no",
    }


class RelaySettings(BaseModel):
    """Defaults applied to every relayed response."""

    media_type: str = Field(
        default="text/html",
        description="Content type used when a caller does not supply one",
    )

    default_headers: dict[str, str] = Field(
        default_factory=_default_headers,
        description="Headers added to relayed responses unless the caller sets them",
    )

    @field_validator("default_headers")
    @classmethod
    def normalize_header_names(cls, v: dict[str, str]) -> dict[str, str]:
        return {name.lower(): value for name, value in v.items()}


class PageSettings(BaseModel):
    """Content of the index page."""

    heading: str = Field(
        default="Hello, Streaming SSR",
        description="Text of the heading rendered on the index page",
    )

    template: Path | None = Field(
        default=None,
        description="Optional Jinja2 template rendered instead of the heading; "
        "it receives the heading as 'heading'",
    )

    @field_validator("template")
    @classmethod
    def validate_template(cls, v: Path | None) -> Path | None:
        if v is not None and not v.is_file():
            raise ValueError(f"Template file not found: {v}")
        return v
