"""SQLAlchemy-backed repository for announcements."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.announcement import Announcement, AnnouncementRepository
from infrastructure.models.announcement import AnnouncementModel
from infrastructure.models.base import as_utc
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyAnnouncementRepository(AnnouncementRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _to_entity(model: AnnouncementModel) -> Announcement:
        return Announcement(
            id=model.id,
            text=model.text,
            author_id=model.author_id,
            created_at=as_utc(model.created_at),
        )

    async def create(self, announcement: Announcement) -> Announcement:
        model = AnnouncementModel(
            text=announcement.text,
            author_id=announcement.author_id,
            created_at=announcement.created_at,
        )
        self.session.add(model)
        await self.session.flush()
        logger.info("announcement_created", announcement_id=model.id, author_id=model.author_id)
        return self._to_entity(model)

    async def list_recent(self, limit: int) -> list[Announcement]:
        result = await self.session.execute(
            select(AnnouncementModel)
            .order_by(AnnouncementModel.created_at.desc(), AnnouncementModel.id.desc())
            .limit(limit)
        )
        return [self._to_entity(m) for m in result.scalars().all()]
