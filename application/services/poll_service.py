"""
投票应用服务 - 创建、投票、关闭与按用户投影的列表

投票校验顺序固定：形状 -> 存在 -> 已关闭 -> 下标范围 -> （可选）预检 -> 插入。
唯一约束才是真正的防重复投票保证，预检只是为了少做无用功。
"""
from __future__ import annotations

from typing import Any, Callable, Optional

from application.dto import PollCountsDTO, PollSummaryDTO, PollViewDTO, VoteResultDTO
from application.ports.realtime import BroadcastPort
from application.services.fanout import write_then_fanout
from core.config import settings
from core.logging_config import get_logger
from domain.common.exceptions import ConflictError, NotFoundError
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.member import Identity
from domain.poll import Poll, coerce_option_index


logger = get_logger(__name__)


class PollService:
    def __init__(self, *, uow_factory: Callable[..., AbstractUnitOfWork], hub: BroadcastPort):
        self._uow_factory = uow_factory
        self._hub = hub

    async def create(self, identity: Identity, question, options) -> PollSummaryDTO:
        def validate() -> Poll:
            identity.ensure_organizer()
            return Poll.new(question, options, identity.id)

        async def persist(draft: Poll) -> PollSummaryDTO:
            async with self._uow_factory() as uow:
                await uow.member_repository.upsert(identity)
                saved = await uow.poll_repository.create(draft)
            return PollSummaryDTO.from_entity(saved)

        return await write_then_fanout(
            validate=validate,
            persist=persist,
            event="newPoll",
            shape=lambda dto: dto.payload(),
            broadcast=self._hub.to_all,
        )

    async def vote(self, identity: Identity, poll_id: int, option_index: Any) -> VoteResultDTO:
        async def persist(index: int) -> VoteResultDTO:
            try:
                async with self._uow_factory() as uow:
                    poll = await uow.poll_repository.get_by_id(poll_id)
                    if poll is None:
                        raise NotFoundError("Poll", poll_id)
                    ballot = poll.new_vote(identity.id, index)
                    existing = await uow.poll_repository.get_vote(poll.id, identity.id)
                    if existing is not None:
                        raise ConflictError(
                            "You have already voted in this poll",
                            details={"pollId": poll.id, "myVote": existing.option_index, "counts": poll.counts},
                        )
                    await uow.member_repository.upsert(identity)
                    counts = await uow.poll_repository.record_vote(ballot)
            except ConflictError as exc:
                details = exc.details if exc.details is not None else {}
                if "myVote" not in details:
                    # 唯一约束拒绝了插入（并发竞争），补充用户之前的投票状态
                    details.update(await self._prior_state(poll_id, identity.id))
                    exc.details = details
                raise
            return VoteResultDTO(poll=PollSummaryDTO.from_entity(poll.with_counts(counts)), my_vote=index)

        return await write_then_fanout(
            validate=lambda: coerce_option_index(option_index),
            persist=persist,
            event="pollUpdate",
            shape=lambda result: PollCountsDTO(id=result.poll.id, counts=result.poll.counts).payload(),
            broadcast=self._hub.to_all,
        )

    async def close(self, identity: Identity, poll_id: int) -> PollSummaryDTO:
        """关闭投票；已关闭时为空操作，不广播"""

        def validate() -> None:
            identity.ensure_organizer()

        async def persist(_: None) -> tuple[PollSummaryDTO, bool]:
            async with self._uow_factory() as uow:
                poll = await uow.poll_repository.get_by_id(poll_id)
                if poll is None:
                    raise NotFoundError("Poll", poll_id)
                changed = poll.close()
                if changed:
                    await uow.poll_repository.mark_closed(poll.id)
            if not changed:
                logger.info("poll_close_noop", poll_id=poll_id)
            return PollSummaryDTO.from_entity(poll), changed

        async def broadcast(event: str, payload: Optional[dict]) -> None:
            if payload is not None:
                await self._hub.to_all(event, payload)

        summary, _ = await write_then_fanout(
            validate=validate,
            persist=persist,
            event="pollClosed",
            shape=lambda result: {"id": result[0].id} if result[1] else None,
            broadcast=broadcast,
        )
        return summary

    async def list(self, identity: Optional[Identity] = None, limit: int | None = None) -> list[PollViewDTO]:
        return await self.snapshot(identity.id if identity else None, limit=limit)

    async def snapshot(self, user_id: Optional[str], *, limit: int | None = None) -> list[PollViewDTO]:
        """Recent polls, each carrying ``user_id``'s own vote (``None`` for anonymous callers)."""
        limit = settings.POLL_LIST_LIMIT if limit is None else limit
        async with self._uow_factory(readonly=True) as uow:
            polls = await uow.poll_repository.list_recent(limit)
            mine = {}
            if user_id is not None:
                mine = await uow.poll_repository.votes_by_user(user_id, [p.id for p in polls])
        return [
            PollViewDTO(**PollSummaryDTO.from_entity(p).model_dump(), my_vote=mine.get(p.id))
            for p in polls
        ]

    async def _prior_state(self, poll_id: int, user_id: str) -> dict:
        async with self._uow_factory(readonly=True) as uow:
            mine = await uow.poll_repository.votes_by_user(user_id, [poll_id])
            poll = await uow.poll_repository.get_by_id(poll_id)
        state: dict = {"myVote": mine.get(poll_id)}
        if poll is not None:
            state["counts"] = poll.counts
        return state
