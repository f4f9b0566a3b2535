"""Process-local store used as a degraded/offline backend.

Nothing here survives a restart. Votes are still keyed by user id (never
by connection id), so a reconnecting client cannot vote twice, and the
(poll, user) rule is checked and applied without yielding to the event
loop, which makes it atomic for a single process.

Writes are applied immediately; ``rollback`` cannot undo them.
"""
from __future__ import annotations

import copy
import itertools
from dataclasses import dataclass, field
from typing import Iterable, Optional

from domain.announcement import Announcement, AnnouncementRepository
from domain.common.exceptions import ConflictError
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.member import Identity, MemberRepository
from domain.poll import Poll, PollRepository, PollVote
from domain.question import Answer, Question, QuestionRepository
from core.logging_config import get_logger


logger = get_logger(__name__)


@dataclass
class InMemoryStore:
    members: dict[str, Identity] = field(default_factory=dict)
    announcements: list[Announcement] = field(default_factory=list)
    questions: dict[int, Question] = field(default_factory=dict)
    polls: dict[int, Poll] = field(default_factory=dict)
    votes: dict[tuple[int, str], PollVote] = field(default_factory=dict)
    _ids: itertools.count = field(default_factory=lambda: itertools.count(1))

    def next_id(self) -> int:
        return next(self._ids)


class InMemoryMemberRepository(MemberRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def upsert(self, identity: Identity) -> Identity:
        self.store.members[identity.id] = identity
        return identity

    async def get_many(self, member_ids: Iterable[str]) -> dict[str, Identity]:
        return {m: self.store.members[m] for m in set(member_ids) if m in self.store.members}


class InMemoryAnnouncementRepository(AnnouncementRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def create(self, announcement: Announcement) -> Announcement:
        saved = copy.copy(announcement)
        saved.id = self.store.next_id()
        self.store.announcements.append(saved)
        logger.info("announcement_created", announcement_id=saved.id, author_id=saved.author_id, backend="memory")
        return copy.copy(saved)

    async def list_recent(self, limit: int) -> list[Announcement]:
        return [copy.copy(a) for a in reversed(self.store.announcements[-limit:])] if limit > 0 else []


class InMemoryQuestionRepository(QuestionRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def create(self, question: Question) -> Question:
        saved = copy.deepcopy(question)
        saved.id = self.store.next_id()
        self.store.questions[saved.id] = saved
        logger.info("question_created", question_id=saved.id, asker_id=saved.asker_id, backend="memory")
        return copy.deepcopy(saved)

    async def get_by_id(self, question_id: int) -> Optional[Question]:
        found = self.store.questions.get(question_id)
        return copy.deepcopy(found) if found else None

    async def add_answer(self, answer: Answer) -> Answer:
        saved = copy.copy(answer)
        saved.id = self.store.next_id()
        self.store.questions[answer.question_id].answers.append(saved)
        logger.info("answer_created", answer_id=saved.id, question_id=saved.question_id, backend="memory")
        return copy.copy(saved)

    async def list_all(self) -> list[Question]:
        return [copy.deepcopy(q) for q in sorted(self.store.questions.values(), key=lambda q: q.id, reverse=True)]


class InMemoryPollRepository(PollRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def create(self, poll: Poll) -> Poll:
        saved = copy.deepcopy(poll)
        saved.id = self.store.next_id()
        self.store.polls[saved.id] = saved
        logger.info("poll_created", poll_id=saved.id, options=len(saved.options), backend="memory")
        return copy.deepcopy(saved)

    async def get_by_id(self, poll_id: int) -> Optional[Poll]:
        found = self.store.polls.get(poll_id)
        return copy.deepcopy(found) if found else None

    async def list_recent(self, limit: int) -> list[Poll]:
        polls = sorted(self.store.polls.values(), key=lambda p: p.id, reverse=True)[:max(limit, 0)]
        return [copy.deepcopy(p) for p in polls]

    async def mark_closed(self, poll_id: int) -> None:
        self.store.polls[poll_id].is_closed = True
        logger.info("poll_closed", poll_id=poll_id, backend="memory")

    async def get_vote(self, poll_id: int, user_id: str) -> Optional[PollVote]:
        return self.store.votes.get((poll_id, user_id))

    async def record_vote(self, vote: PollVote) -> list[int]:
        key = (vote.poll_id, vote.user_id)
        if key in self.store.votes:
            logger.warning("poll_vote_conflict", poll_id=vote.poll_id, user_id=vote.user_id, backend="memory")
            raise ConflictError("You have already voted in this poll", details={"pollId": vote.poll_id})
        saved = copy.copy(vote)
        saved.id = self.store.next_id()
        self.store.votes[key] = saved
        poll = self.store.polls[vote.poll_id]
        poll.counts[vote.option_index] += 1
        logger.info(
            "poll_vote_recorded",
            poll_id=vote.poll_id,
            user_id=vote.user_id,
            option_index=vote.option_index,
            backend="memory",
        )
        return list(poll.counts)

    async def votes_by_user(self, user_id: str, poll_ids: Iterable[int]) -> dict[int, int]:
        result = {}
        for poll_id in poll_ids:
            vote = self.store.votes.get((poll_id, user_id))
            if vote is not None:
                result[poll_id] = vote.option_index
        return result


class InMemoryUnitOfWork(AbstractUnitOfWork):
    def __init__(self, store: InMemoryStore, *, readonly: bool = False) -> None:
        super().__init__(readonly=readonly)
        self.member_repository = InMemoryMemberRepository(store)
        self.announcement_repository = InMemoryAnnouncementRepository(store)
        self.question_repository = InMemoryQuestionRepository(store)
        self.poll_repository = InMemoryPollRepository(store)

    async def commit(self) -> None:
        self._committed = True

    async def rollback(self) -> None:
        self._committed = False


def memory_uow_factory(store: InMemoryStore | None = None):
    store = store or InMemoryStore()

    def _factory(*, readonly: bool = False) -> InMemoryUnitOfWork:
        return InMemoryUnitOfWork(store, readonly=readonly)

    _factory.store = store  # type: ignore[attr-defined]
    return _factory
