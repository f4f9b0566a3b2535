"""Repository abstraction for the member directory."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from .entity import Identity


class MemberRepository(ABC):

    @abstractmethod
    async def upsert(self, identity: Identity) -> Identity:
        """Insert or refresh the display fields of ``identity``."""
        ...

    @abstractmethod
    async def get_many(self, member_ids: Iterable[str]) -> dict[str, Identity]:
        ...
