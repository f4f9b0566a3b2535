"""Application service for realtime WebSocket workflows.

Connection lifecycle (connect, role tagging, disconnect) and on-demand
snapshot delivery. Keeps application logic separate from the concrete
connection registry and transport. The hub caches nothing: late joiners
catch up from the store.
"""
from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Optional

from application.services.announcement_service import AnnouncementService
from application.services.poll_service import PollService
from application.services.question_service import QuestionService
from infrastructure.realtime.connection_manager import Connection, ConnectionManager, SocketLike
from core.logging_config import get_logger


logger = get_logger(__name__)

SNAPSHOT_EVENTS = {
    "announcements": "announcementsSnapshot",
    "questions": "questionsSnapshot",
    "polls": "pollsSnapshot",
}


class RealtimeService:
    def __init__(
        self,
        *,
        connections: ConnectionManager,
        announcements: AnnouncementService,
        questions: QuestionService,
        polls: PollService,
    ) -> None:
        self._conn = connections
        self._loaders: Dict[str, Callable[[Connection], Awaitable[list]]] = {
            "announcements": lambda c: announcements.list(),
            "questions": lambda c: questions.list(),
            "polls": lambda c: polls.snapshot(c.user_id),
        }

    # Connection lifecycle management
    def on_connect(self, ws: SocketLike, *, user_id: Optional[str] = None) -> Connection:
        """Register a new connection with no role. No broadcast."""
        return self._conn.register(ws, user_id=user_id)

    def announce_role(self, connection: Connection, role: Any) -> bool:
        """Tag ``connection`` for ``to_role`` delivery.

        The role is an opaque routing key supplied by the client; it is never
        consulted for authorization. Empty or non-string roles are ignored.
        """
        if not isinstance(role, str) or not role.strip():
            logger.info("ws_join_role_ignored", connection_id=connection.id)
            return False
        return self._conn.set_role(connection.id, role.strip())

    def on_disconnect(self, connection: Connection) -> None:
        """Remove from every role set and the registry. Idempotent."""
        self._conn.unregister(connection.id)

    async def request_snapshot(self, connection: Connection, topic: Any) -> None:
        """Deliver a topic's durable state to ``connection`` only.

        A failed store query is logged and an empty snapshot is delivered;
        the connection is never broken by it.
        """
        event = SNAPSHOT_EVENTS.get(topic) if isinstance(topic, str) else None
        if event is None:
            logger.info("ws_snapshot_unknown_topic", connection_id=connection.id, topic=str(topic))
            return
        try:
            items = await self._loaders[topic](connection)
            data = [item.payload() for item in items]
        except Exception as exc:
            logger.error(
                "ws_snapshot_failed",
                connection_id=connection.id,
                topic=topic,
                error=str(exc),
                exc_info=True,
            )
            data = []
        await self._conn.to_connection(connection.id, event, data)

    # Expose for API convenience
    @property
    def connections(self) -> ConnectionManager:
        return self._conn
