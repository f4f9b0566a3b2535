"""Unit of Work 抽象定义"""
from __future__ import annotations

from abc import ABC, abstractmethod

from domain.member.repository import MemberRepository
from domain.announcement.repository import AnnouncementRepository
from domain.question.repository import QuestionRepository
from domain.poll.repository import PollRepository


class AbstractUnitOfWork(ABC):
    """应用层事务边界控制抽象"""

    member_repository: MemberRepository
    announcement_repository: AnnouncementRepository
    question_repository: QuestionRepository
    poll_repository: PollRepository

    def __init__(self, *, readonly: bool = False) -> None:
        self._committed = False
        self._readonly = readonly
        self.member_repository = None  # type: ignore[assignment]
        self.announcement_repository = None  # type: ignore[assignment]
        self.question_repository = None  # type: ignore[assignment]
        self.poll_repository = None  # type: ignore[assignment]

    async def __aenter__(self) -> "AbstractUnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc:
            await self.rollback()
        else:
            # 只在非只读且未显式提交时自动提交
            if not self._readonly and not self._committed:
                await self.commit()

    @abstractmethod
    async def commit(self) -> None:
        """提交事务"""
        ...

    @abstractmethod
    async def rollback(self) -> None:
        """回滚事务"""
