"""Server configuration settings."""

from pydantic import BaseModel, Field, field_validator


class ServerSettings(BaseModel):
    """Server-specific configuration settings."""

    host: str = Field(
        default="127.0.0.1",
        description="Server host address",
    )

    port: int = Field(
        default=8000,
        description="Server port number (0 lets the OS pick a free port)",
        ge=0,
        le=65535,
    )

    log_level: str = Field(
        default="info",
        description="Log level handed to uvicorn",
    )

    reload: bool = Field(
        default=False,
        description="Enable auto-reload for development",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        lower_v = v.lower()
        valid_levels = ["critical", "error", "warning", "info", "debug", "trace"]
        if lower_v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return lower_v
