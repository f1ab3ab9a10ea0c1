"""User model shared between auth service and route dependencies."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class User(BaseModel):
    """Caller context injected via Depends().

    ``username`` may be ``None``: upstream identity providers are not
    required to supply a subject, and the gateway does not need one.
    """

    username: Optional[str] = Field(default=None, description="Caller identifier, if any")

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }
