"""In-process WebSocket hub.

Owns every live connection, groups them by routing role, and implements
the three emit primitives of ``BroadcastPort``. All mutations happen on
the single event loop and never await in between, so the maps need no
lock. Sends go through a bounded per-connection queue drained by a
sender task, so one slow socket never stalls a broadcast.
"""
from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, Set

from application.ports.realtime import Envelope
from core.logging_config import get_logger
from core.config import settings


logger = get_logger(__name__)

OVERFLOW_POLICIES = {"drop_oldest", "drop_new", "disconnect"}


class SocketLike(Protocol):
    async def send_json(self, data: Any) -> None: ...

    async def close(self, code: int = 1000) -> None: ...


@dataclass(eq=False)
class Connection:
    """Transient, hub-owned session. ``role`` is a routing key, not a credential."""

    ws: SocketLike
    user_id: Optional[str] = None
    role: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)


class ConnectionManager:
    """Manage per-process WebSocket connections and role channels."""

    def __init__(self, *, queue_max: int | None = None, overflow_policy: str | None = None) -> None:
        self._connections: Dict[str, Connection] = {}
        # role -> set[connection_id]
        self._by_role: Dict[str, Set[str]] = {}
        self._send_queues: Dict[str, asyncio.Queue] = {}
        self._sender_tasks: Dict[str, asyncio.Task] = {}
        self._queue_max = max(1, int(queue_max or settings.REALTIME_WS_SEND_QUEUE_MAX))
        policy = (overflow_policy or settings.REALTIME_WS_SEND_OVERFLOW_POLICY or "drop_oldest").lower()
        if policy not in OVERFLOW_POLICIES:
            logger.warning("ws_send_queue_policy_invalid", policy=policy, fallback="drop_oldest")
            policy = "drop_oldest"
        self._overflow_policy = policy

    # -------------------- registry --------------------
    def register(self, ws: SocketLike, *, user_id: Optional[str] = None) -> Connection:
        conn = Connection(ws=ws, user_id=user_id)
        self._connections[conn.id] = conn
        q: asyncio.Queue = asyncio.Queue(maxsize=self._queue_max)
        self._send_queues[conn.id] = q
        self._sender_tasks[conn.id] = asyncio.create_task(self._sender_loop(conn, q))
        logger.info("ws_connected", connection_id=conn.id, user_id=user_id)
        return conn

    def set_role(self, connection_id: str, role: str) -> bool:
        conn = self._connections.get(connection_id)
        if conn is None:
            return False
        if conn.role is not None and conn.role != role:
            self._discard_from_role(conn.role, connection_id)
        conn.role = role
        self._by_role.setdefault(role, set()).add(connection_id)
        logger.info("ws_join_role", connection_id=connection_id, role=role)
        return True

    def unregister(self, connection_id: str) -> None:
        conn = self._connections.pop(connection_id, None)
        for role in list(self._by_role):
            self._discard_from_role(role, connection_id)
        task = self._sender_tasks.pop(connection_id, None)
        if task is not None:
            task.cancel()
        self._send_queues.pop(connection_id, None)
        if conn is not None:
            logger.info("ws_disconnected", connection_id=connection_id, user_id=conn.user_id)

    def get(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def role_members(self, role: str) -> Set[str]:
        return set(self._by_role.get(role, set()))

    def __len__(self) -> int:
        return len(self._connections)

    def _discard_from_role(self, role: str, connection_id: str) -> None:
        members = self._by_role.get(role)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            self._by_role.pop(role, None)

    # -------------------- emit primitives --------------------
    async def to_all(self, event: str, payload: Any) -> None:
        frame = Envelope(event=event, data=payload).model_dump(mode="json")
        targets = list(self._connections)
        for cid in targets:
            self._enqueue(cid, frame)
        logger.debug("ws_broadcast_all", event=event, targets=len(targets))

    async def to_role(self, role: str, event: str, payload: Any) -> None:
        targets = list(self._by_role.get(role, set()))
        if not targets:
            return
        frame = Envelope(event=event, data=payload).model_dump(mode="json")
        for cid in targets:
            self._enqueue(cid, frame)
        logger.debug("ws_broadcast_role", event=event, role=role, targets=len(targets))

    async def to_connection(self, connection_id: str, event: str, payload: Any) -> None:
        if connection_id not in self._connections:
            return
        self._enqueue(connection_id, Envelope(event=event, data=payload).model_dump(mode="json"))

    def _enqueue(self, connection_id: str, frame: dict) -> None:
        q = self._send_queues.get(connection_id)
        if q is None:
            return
        try:
            q.put_nowait(frame)
            return
        except asyncio.QueueFull:
            pass
        if self._overflow_policy == "drop_new":
            logger.warning("ws_send_queue_drop_new", connection_id=connection_id)
            return
        if self._overflow_policy == "disconnect":
            logger.warning("ws_send_queue_disconnect", connection_id=connection_id)
            conn = self._connections.get(connection_id)
            if conn is not None:
                asyncio.create_task(self._close_quietly(conn, code=1013))
            return
        # drop_oldest
        try:
            q.get_nowait()
            q.task_done()
        except asyncio.QueueEmpty:
            pass
        try:
            q.put_nowait(frame)
        except asyncio.QueueFull:
            logger.warning("ws_send_queue_drop_after_trim", connection_id=connection_id)

    async def _sender_loop(self, conn: Connection, q: asyncio.Queue) -> None:
        try:
            while True:
                frame = await q.get()
                try:
                    await conn.ws.send_json(frame)
                except Exception as exc:  # transport failure; cleanup happens on disconnect
                    logger.warning("ws_send_failed", connection_id=conn.id, error=str(exc))
                finally:
                    q.task_done()
        except asyncio.CancelledError:
            return

    @staticmethod
    async def _close_quietly(conn: Connection, *, code: int) -> None:
        try:
            await conn.ws.close(code=code)
        except Exception as exc:
            logger.debug("ws_close_failed", connection_id=conn.id, error=str(exc))

    # -------------------- lifecycle helpers --------------------
    async def flush(self) -> None:
        """Wait until every queued frame has been handed to its socket."""
        await asyncio.gather(*(q.join() for q in list(self._send_queues.values())))

    async def aclose(self) -> None:
        for cid in list(self._connections):
            self.unregister(cid)
