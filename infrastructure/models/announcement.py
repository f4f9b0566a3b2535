"""
公告数据库模型（创建后不可变）
"""
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text

from .base import Base, utcnow


class AnnouncementModel(Base):
    __tablename__ = "announcements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    text = Column(Text, nullable=False)
    author_id = Column(String(64), ForeignKey("members.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_announcements_created_at", "created_at"),
    )

    def __repr__(self):
        return f"<AnnouncementModel(id={self.id}, author_id='{self.author_id}')>"
