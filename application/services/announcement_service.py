"""
公告应用服务 - 组织者发布公告与角色提醒
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from application.dto import AnnouncementDTO, MemberDTO, ReminderDTO
from application.ports.realtime import BroadcastPort
from application.services.fanout import write_then_fanout
from core.config import settings
from core.logging_config import get_logger
from domain.announcement import Announcement
from domain.common.exceptions import ValidationError
from domain.common.text import clean_text
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.member import Identity


logger = get_logger(__name__)


class AnnouncementService:
    """
    公告服务

    写路径：校验 -> 持久化 -> ``announcementCreated`` 广播给所有连接。
    """

    def __init__(self, *, uow_factory: Callable[..., AbstractUnitOfWork], hub: BroadcastPort):
        self._uow_factory = uow_factory
        self._hub = hub

    async def create(self, identity: Identity, text) -> AnnouncementDTO:
        def validate() -> Announcement:
            draft = Announcement.new(text, identity.id)
            identity.ensure_organizer()
            return draft

        async def persist(draft: Announcement) -> AnnouncementDTO:
            async with self._uow_factory() as uow:
                await uow.member_repository.upsert(identity)
                saved = await uow.announcement_repository.create(draft)
            saved.author = identity
            return AnnouncementDTO.from_entity(saved)

        return await write_then_fanout(
            validate=validate,
            persist=persist,
            event="announcementCreated",
            shape=lambda dto: dto.payload(),
            broadcast=self._hub.to_all,
        )

    async def list(self, limit: int | None = None) -> list[AnnouncementDTO]:
        """最新的公告，按时间倒序"""
        limit = settings.ANNOUNCEMENT_LIST_LIMIT if limit is None else limit
        async with self._uow_factory(readonly=True) as uow:
            items = await uow.announcement_repository.list_recent(limit)
            members = await uow.member_repository.get_many(a.author_id for a in items)
        for item in items:
            item.author = members.get(item.author_id)
        return [AnnouncementDTO.from_entity(a) for a in items]

    async def send_reminder(self, identity: Identity, role, message) -> ReminderDTO:
        """Push a one-off reminder to every connection tagged with ``role``.

        Organizer only. Not persisted: a reminder sent while nobody holds
        the role is lost.
        """
        identity.ensure_organizer()
        if not isinstance(role, str) or not role.strip():
            raise ValidationError("role is required", field="role")
        reminder = ReminderDTO(
            role=role.strip(),
            message=clean_text(message, field="message"),
            sender=MemberDTO.from_identity(identity),
            sent_at=datetime.now(timezone.utc),
        )
        await self._hub.to_role(reminder.role, "reminderReceived", reminder.payload())
        logger.info("reminder_sent", role=reminder.role, sender_id=identity.id)
        return reminder
