"""WebSocket route for the live event channel.

- Optional token (``?token=`` or ``Authorization: Bearer``); anonymous
  connections may read snapshots and receive broadcasts, writes need a
  verified identity.
- Heartbeat/idle-timeout handling to detect half-open connections: the
  server sends a ``ping`` frame on idle and closes after configurable
  missed replies.
- Domain errors go back to the caller only as an ``error`` frame; the
  socket is never closed because of them. Malformed frames are logged
  and ignored.
"""
from __future__ import annotations

import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from api.dependencies import app_service
from application.services.announcement_service import AnnouncementService
from application.services.poll_service import PollService
from application.services.question_service import QuestionService
from application.services.realtime_service import RealtimeService
from application.services.token_service import TokenService
from core.config import settings
from core.exceptions import UnauthorizedException
from core.logging_config import get_logger
from domain.common.exceptions import BusinessException
from domain.member import Identity
from infrastructure.realtime.connection_manager import Connection


logger = get_logger(__name__)


router = APIRouter(prefix="/ws", tags=["WebSocket"])


class MalformedFrame(Exception):
    """Frame shape is wrong; the frame is dropped without a reply."""


def _extract_token(ws: WebSocket) -> str | None:
    # Prefer query param, fallback to header `Authorization: Bearer x`
    token = ws.query_params.get("token")
    if token:
        return token
    auth = ws.headers.get("authorization") or ""
    if auth.lower().startswith("bearer "):
        return auth[7:].strip()
    return None


def _field(data: Any, key: str) -> Any:
    if not isinstance(data, dict) or key not in data:
        raise MalformedFrame(f"missing field: {key}")
    return data[key]


def _text(data: Any, *keys: str) -> Any:
    """Plain string payloads are accepted as the text itself."""
    if isinstance(data, str):
        return data
    if isinstance(data, dict):
        for key in keys:
            if key in data:
                return data[key]
    raise MalformedFrame(f"missing field: {keys[0]}")


def _record_id(data: Any, key: str) -> int:
    value = data if isinstance(data, int) else _field(data, key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedFrame(f"{key} must be an integer")
    return value


async def _receive_text(ws: WebSocket) -> Optional[str]:
    """Next text frame; ``None`` for frames that carry no text."""
    message = await ws.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(code=message.get("code", 1000))
    return message.get("text")


class LiveSession:
    """Per-connection dispatcher; frames are handled one at a time, in arrival order."""

    def __init__(self, ws: WebSocket, conn: Connection, identity: Optional[Identity]) -> None:
        app = ws.app
        self.conn = conn
        self.identity = identity
        self.rt: RealtimeService = app_service(app, "realtime_service")
        self.announcements: AnnouncementService = app_service(app, "announcement_service")
        self.questions: QuestionService = app_service(app, "question_service")
        self.polls: PollService = app_service(app, "poll_service")
        self._reads: Dict[str, Callable[[Any], Awaitable[None]]] = {
            "joinRole": self._join_role,
            "requestPolls": lambda data: self.rt.request_snapshot(self.conn, "polls"),
            "requestSnapshot": self._request_snapshot,
            "ping": lambda data: self.rt.connections.to_connection(self.conn.id, "pong", None),
            "pong": self._noop,
        }
        self._writes: Dict[str, Callable[[Identity, Any], Awaitable[Any]]] = {
            "sendAnnouncement": lambda me, data: self.announcements.create(me, _text(data, "text")),
            "sendQuestion": lambda me, data: self.questions.ask(me, _text(data, "text", "question")),
            "sendAnswer": lambda me, data: self.questions.answer(
                me, _record_id(data, "questionId"), _text(data, "answer", "text")
            ),
            "createPoll": lambda me, data: self.polls.create(
                me, _field(data, "question"), _field(data, "options")
            ),
            "votePoll": lambda me, data: self.polls.vote(
                me, _record_id(data, "pollId"), _field(data, "optionIndex")
            ),
            "closePoll": lambda me, data: self.polls.close(me, _record_id(data, "pollId")),
            "sendReminder": lambda me, data: self.announcements.send_reminder(
                me, _field(data, "role"), _text(data, "message")
            ),
        }

    async def handle(self, raw: str) -> None:
        try:
            frame = json.loads(raw)
        except ValueError:
            logger.info("ws_frame_malformed", connection_id=self.conn.id, reason="invalid json")
            return
        if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
            logger.info("ws_frame_malformed", connection_id=self.conn.id, reason="missing event")
            return
        event = frame["event"]
        data = frame.get("data")
        try:
            if event in self._reads:
                await self._reads[event](data)
            elif event in self._writes:
                if self.identity is None:
                    raise UnauthorizedException("Sign in to perform this action")
                # the write completes and broadcasts even if this socket goes away meanwhile
                await asyncio.shield(self._writes[event](self.identity, data))
            else:
                logger.info("ws_event_unknown", connection_id=self.conn.id, ws_event=event)
        except MalformedFrame as exc:
            logger.info("ws_frame_malformed", connection_id=self.conn.id, ws_event=event, reason=str(exc))
        except BusinessException as exc:
            logger.info("ws_event_rejected", connection_id=self.conn.id, ws_event=event, code=int(exc.code))
            await self.rt.connections.to_connection(self.conn.id, "error", {**exc.to_payload(), "event": event})

    async def _join_role(self, data: Any) -> None:
        self.rt.announce_role(self.conn, data)

    async def _request_snapshot(self, data: Any) -> None:
        topic = data if isinstance(data, str) else _field(data, "topic")
        await self.rt.request_snapshot(self.conn, topic)

    async def _noop(self, data: Any) -> None:
        return None


@router.websocket("")
async def websocket_endpoint(ws: WebSocket) -> None:
    await ws.accept()
    tokens: TokenService = app_service(ws.app, "token_service")
    identity: Optional[Identity] = None
    token = _extract_token(ws)
    if token:
        try:
            identity = tokens.verify_access_token(token)
        except BusinessException as exc:
            # a token that was supplied but does not verify is refused outright
            logger.info("ws_auth_failed", code=int(exc.code), reason=exc.message)
            await ws.close(code=1008)
            return

    rt: RealtimeService = app_service(ws.app, "realtime_service")
    conn = rt.on_connect(ws, user_id=identity.id if identity else None)
    session = LiveSession(ws, conn, identity)
    try:
        # Heartbeat/idle detection parameters (configurable via .env)
        idle_ping_interval = float(settings.REALTIME_WS_IDLE_PING_INTERVAL_S)
        pong_grace = float(settings.REALTIME_WS_PONG_GRACE_S)
        missed_limit = int(settings.REALTIME_WS_MISSED_PING_LIMIT)

        missed = 0
        while True:
            if idle_ping_interval and idle_ping_interval > 0:
                try:
                    raw = await asyncio.wait_for(_receive_text(ws), timeout=idle_ping_interval)
                except asyncio.TimeoutError:
                    # Idle: send ping and wait a short grace for response
                    missed += 1
                    await rt.connections.to_connection(conn.id, "ping", None)
                    try:
                        raw = await asyncio.wait_for(_receive_text(ws), timeout=pong_grace)
                        missed = 0
                    except asyncio.TimeoutError:
                        if missed > missed_limit:
                            await ws.close(code=1001)
                            break
                        continue
            else:
                raw = await _receive_text(ws)
            if raw is None:
                logger.info("ws_frame_malformed", connection_id=conn.id, reason="non-text frame")
                continue
            await session.handle(raw)
    except WebSocketDisconnect:
        pass
    except Exception as exc:
        logger.error("ws_error", connection_id=conn.id, error=str(exc), exc_info=True)
        if ws.application_state == WebSocketState.CONNECTED:
            await ws.close(code=1011)
    finally:
        rt.on_disconnect(conn)
