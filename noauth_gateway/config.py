"""Central configuration object (env‑driven).

Uses Pydantic *BaseSettings* so everything can be overridden via environment
variables or a local *.env* file.
"""
from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings

# Filename looked up under GATEWAY_HOME when NOAUTH_CONFIG is not set.
DEFAULT_NOAUTH_CONFIG = "noauth-config.xml"


class Settings(BaseSettings):
    """Load settings from env vars or .env."""

    NOAUTH_CONFIG: Optional[Path] = Field(
        default=None,
        description="Path to the XML connection document (optional)",
    )

    POSTAUTH_CONFIG: Optional[Path] = Field(
        default=None,
        description="Document path used instead of NOAUTH_CONFIG in postauth mode (optional)",
    )

    GATEWAY_HOME: Path = Field(
        default=Path.home() / ".noauth-gateway",
        description="Base directory searched for the default document",
    )

    AUTH_PROVIDER: Literal["noauth", "postauth"] = Field(
        default="noauth",
        description="'noauth' admits everyone, 'postauth' trusts upstream tokens",
    )

    UPSTREAM_JWT_SECRET: str = Field(
        default="dev‑secret‑change‑me",
        description="HS256 secret shared with the upstream identity provider",
    )

    LOG_LEVEL: str = Field(default="INFO", description="Loguru sink level")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


def resolve_document_path(cfg: Settings | None = None) -> Path:
    """Return the connection document path, defaulting to GATEWAY_HOME/noauth-config.xml.

    Each provider reads its own setting: ``POSTAUTH_CONFIG`` in postauth mode,
    ``NOAUTH_CONFIG`` otherwise.  Both fall back to the same default file.
    """
    cfg = cfg or settings
    explicit = cfg.POSTAUTH_CONFIG if cfg.AUTH_PROVIDER == "postauth" else cfg.NOAUTH_CONFIG
    if explicit is not None:
        return Path(explicit).expanduser()
    return Path(cfg.GATEWAY_HOME).expanduser() / DEFAULT_NOAUTH_CONFIG


# singleton instance ---------------------------------------------------------

settings = Settings()
