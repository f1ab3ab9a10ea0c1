"""Pydantic DTOs describing the gateway's north‑bound contract.

These are the *payload* objects used by ``routes/gateway_routes.py``.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from noauth_gateway.models.connection import ConnectionRecord, StoreStatus

# ---------------------------------------------------------------------------
# Connection listing
# ---------------------------------------------------------------------------


class UserContextResponse(BaseModel):
    """Every connection available to the caller, plus who the caller is."""

    provider: str = Field(..., description="Identifier of the active provider")
    identifier: Optional[str] = Field(
        default=None,
        description="Caller identity as seen by the provider (may be absent)",
    )
    configurations: dict[str, ConnectionRecord]

    model_config = {"extra": "forbid"}


# ---------------------------------------------------------------------------
# Reload
# ---------------------------------------------------------------------------


class ReloadResponse(BaseModel):
    """Return payload for an explicit reload call."""

    reloaded: bool = Field(..., description="True if a new snapshot was published")
    status: StoreStatus

    model_config = {"extra": "forbid"}
