"""
投票仓储实现 - 投票记录与计数在同一事务内完成
"""
from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from domain.common.exceptions import ConflictError
from domain.poll import Poll, PollRepository, PollVote
from infrastructure.models.base import as_utc, storable_id
from infrastructure.models.poll import PollModel, PollOptionModel, PollVoteModel
from core.logging_config import get_logger


logger = get_logger(__name__)


def _is_vote_uniqueness_violation(exc: IntegrityError) -> bool:
    msg = str(exc.orig if exc.orig is not None else exc).lower()
    if "poll_votes" not in msg and "uq_poll_votes" not in msg:
        return False
    return "unique" in msg or "duplicate" in msg


class SQLAlchemyPollRepository(PollRepository):
    """投票仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _to_entity(model: PollModel) -> Poll:
        options = sorted(model.options, key=lambda o: o.position)
        return Poll(
            id=model.id,
            question=model.question,
            options=[o.label for o in options],
            counts=[o.vote_count for o in options],
            created_by=model.created_by,
            is_closed=bool(model.is_closed),
            created_at=as_utc(model.created_at),
        )

    async def create(self, poll: Poll) -> Poll:
        model = PollModel(
            question=poll.question,
            is_closed=poll.is_closed,
            created_by=poll.created_by,
            created_at=poll.created_at,
        )
        self.session.add(model)
        await self.session.flush()
        for position, label in enumerate(poll.options):
            self.session.add(
                PollOptionModel(poll_id=model.id, position=position, label=label, vote_count=0)
            )
        await self.session.flush()
        logger.info("poll_created", poll_id=model.id, options=len(poll.options))
        return Poll(
            id=model.id,
            question=poll.question,
            options=list(poll.options),
            counts=[0] * len(poll.options),
            created_by=poll.created_by,
            is_closed=poll.is_closed,
            created_at=as_utc(model.created_at),
        )

    async def get_by_id(self, poll_id: int) -> Optional[Poll]:
        if not storable_id(poll_id):
            return None
        result = await self.session.execute(
            select(PollModel).where(PollModel.id == poll_id).execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def list_recent(self, limit: int) -> list[Poll]:
        result = await self.session.execute(
            select(PollModel).order_by(PollModel.created_at.desc(), PollModel.id.desc()).limit(limit)
        )
        return [self._to_entity(m) for m in result.scalars().all()]

    async def mark_closed(self, poll_id: int) -> None:
        await self.session.execute(
            update(PollModel).where(PollModel.id == poll_id).values(is_closed=True)
        )
        logger.info("poll_closed", poll_id=poll_id)

    async def get_vote(self, poll_id: int, user_id: str) -> Optional[PollVote]:
        result = await self.session.execute(
            select(PollVoteModel).where(
                PollVoteModel.poll_id == poll_id,
                PollVoteModel.user_id == user_id,
            )
        )
        model = result.scalar_one_or_none()
        if model is None:
            return None
        return PollVote(
            id=model.id,
            poll_id=model.poll_id,
            user_id=model.user_id,
            option_index=model.option_index,
            created_at=as_utc(model.created_at),
        )

    async def record_vote(self, vote: PollVote) -> list[int]:
        self.session.add(
            PollVoteModel(
                poll_id=vote.poll_id,
                user_id=vote.user_id,
                option_index=vote.option_index,
                created_at=vote.created_at,
            )
        )
        try:
            await self.session.flush()
        except IntegrityError as e:
            # 整个事务回滚：投票记录与计数都不落库
            await self.session.rollback()
            if _is_vote_uniqueness_violation(e):
                logger.warning("poll_vote_conflict", poll_id=vote.poll_id, user_id=vote.user_id)
                raise ConflictError(
                    "You have already voted in this poll",
                    details={"pollId": vote.poll_id},
                ) from e
            raise

        await self.session.execute(
            update(PollOptionModel)
            .where(
                PollOptionModel.poll_id == vote.poll_id,
                PollOptionModel.position == vote.option_index,
            )
            .values(vote_count=PollOptionModel.vote_count + 1)
        )
        logger.info(
            "poll_vote_recorded",
            poll_id=vote.poll_id,
            user_id=vote.user_id,
            option_index=vote.option_index,
        )
        return await self._counts(vote.poll_id)

    async def _counts(self, poll_id: int) -> list[int]:
        result = await self.session.execute(
            select(PollOptionModel.vote_count)
            .where(PollOptionModel.poll_id == poll_id)
            .order_by(PollOptionModel.position)
        )
        return [int(c) for c in result.scalars().all()]

    async def votes_by_user(self, user_id: str, poll_ids: Iterable[int]) -> dict[int, int]:
        ids = list(poll_ids)
        if not ids:
            return {}
        result = await self.session.execute(
            select(PollVoteModel.poll_id, PollVoteModel.option_index).where(
                PollVoteModel.user_id == user_id,
                PollVoteModel.poll_id.in_(ids),
            )
        )
        return {poll_id: option_index for poll_id, option_index in result.all()}
