"""Repository abstraction for polls and the vote ledger."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Optional

from .entity import Poll, PollVote


class PollRepository(ABC):

    @abstractmethod
    async def create(self, poll: Poll) -> Poll:
        ...

    @abstractmethod
    async def get_by_id(self, poll_id: int) -> Optional[Poll]:
        ...

    @abstractmethod
    async def list_recent(self, limit: int) -> list[Poll]:
        """Newest first."""
        ...

    @abstractmethod
    async def mark_closed(self, poll_id: int) -> None:
        ...

    @abstractmethod
    async def get_vote(self, poll_id: int, user_id: str) -> Optional[PollVote]:
        ...

    @abstractmethod
    async def record_vote(self, vote: PollVote) -> list[int]:
        """Insert ``vote`` and bump its option count as one operation.

        Raises ``ConflictError`` when the (poll, user) uniqueness rule
        rejects the insert; the count is left untouched in that case.
        Returns the poll's counts after the increment.
        """
        ...

    @abstractmethod
    async def votes_by_user(self, user_id: str, poll_ids: Iterable[int]) -> dict[int, int]:
        """Map poll id -> chosen option index for ``user_id``."""
        ...
