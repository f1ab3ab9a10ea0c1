"""Data models for connection definitions and the store's cached snapshot.

``ConnectionRecord`` is what the parser produces for each ``<config>``
element.  ``StoreSnapshot`` pairs a fully built document with the source
file's modification time so the store can decide when to reload.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Mapping, Optional

from pydantic import BaseModel, Field, field_serializer, field_validator


class ConnectionRecord(BaseModel):
    """One named protocol + parameters tuple describing a remote target."""

    protocol: str = Field(..., min_length=1, description="rdp, vnc, ssh, telnet, etc.")
    parameters: Mapping[str, str] = Field(
        default_factory=dict,
        validate_default=True,
        description="Protocol parameters, e.g. hostname and port",
    )

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }

    # read-only view; records are shared by every reader of a snapshot
    @field_validator("parameters", mode="after")
    @classmethod
    def _freeze_parameters(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(value))

    @field_serializer("parameters")
    def _dump_parameters(self, value: Mapping[str, str]) -> dict[str, str]:
        return dict(value)


# name → record, read-only view handed out by the parser and the store
ConfigDocument = Mapping[str, ConnectionRecord]


@dataclass(frozen=True)
class StoreSnapshot:
    """Immutable (document, freshness timestamp) pair swapped in by reloads.

    Attributes:
        document: Parsed connection records, indexed by name.
        source_timestamp: ``st_mtime_ns`` of the document when it was read.
        loaded_at: Wall-clock time the snapshot was published.
    """

    document: ConfigDocument
    source_timestamp: int
    loaded_at: datetime


class StoreStatus(BaseModel):
    """Point-in-time view of the store, safe for API responses."""

    path: str
    loaded: bool
    source_timestamp: Optional[int] = None
    loaded_at: Optional[datetime] = None
    connection_count: int = 0
    reload_count: int = 0
    last_error: Optional[str] = Field(
        default=None,
        description="Message of the most recent failed reload, cleared on success",
    )

    model_config = {"extra": "forbid", "frozen": True}
