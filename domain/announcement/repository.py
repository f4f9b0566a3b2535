"""Repository abstraction for announcements."""
from __future__ import annotations

from abc import ABC, abstractmethod

from .entity import Announcement


class AnnouncementRepository(ABC):

    @abstractmethod
    async def create(self, announcement: Announcement) -> Announcement:
        ...

    @abstractmethod
    async def list_recent(self, limit: int) -> list[Announcement]:
        """Newest first."""
        ...
