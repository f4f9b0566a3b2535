"""
Realtime port and frame DTOs (contracts-first).

Topic services only see ``BroadcastPort``; the concrete hub that owns
sockets lives in infrastructure.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Protocol

from pydantic import BaseModel, Field


def _utc_now_z() -> str:
    ts = datetime.now(timezone.utc)
    return ts.isoformat().replace("+00:00", "Z")


class Envelope(BaseModel):
    """Unified socket frame.

    Fields:
      - event: named event (``announcementCreated``, ``pollUpdate`` ...)
      - data: JSON-serializable payload (record, list or scalar)
      - ts: server-generated UTC timestamp (ISO8601 with Z)
    """

    event: str
    data: Any = None
    ts: str = Field(default_factory=_utc_now_z)


class BroadcastPort(Protocol):
    """Fire-and-forget fan-out primitives.

    No acknowledgement, no retry, nothing retained: a frame emitted while
    nobody is connected is simply gone. Clients reconcile via snapshots.
    """

    async def to_all(self, event: str, payload: Any) -> None: ...

    async def to_role(self, role: str, event: str, payload: Any) -> None: ...

    async def to_connection(self, connection_id: str, event: str, payload: Any) -> None: ...


__all__ = ["Envelope", "BroadcastPort"]
