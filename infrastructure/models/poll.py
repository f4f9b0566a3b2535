"""
投票数据库模型

计数按选项行存放（poll_options.vote_count），以便使用
``vote_count = vote_count + 1`` 原子自增；(poll_id, user_id) 的唯一约束
是防止重复投票的唯一保证。
"""
from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class PollModel(Base):
    __tablename__ = "polls"

    id = Column(Integer, primary_key=True, autoincrement=True)
    question = Column(Text, nullable=False)
    is_closed = Column(Boolean, nullable=False, default=False, comment="单调：false -> true")
    created_by = Column(String(64), ForeignKey("members.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    options = relationship(
        "PollOptionModel",
        back_populates="poll",
        order_by="PollOptionModel.position",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_polls_created_at", "created_at"),
    )


class PollOptionModel(Base):
    __tablename__ = "poll_options"

    id = Column(Integer, primary_key=True, autoincrement=True)
    poll_id = Column(Integer, ForeignKey("polls.id"), nullable=False)
    position = Column(Integer, nullable=False, comment="选项下标，从0开始")
    label = Column(String(500), nullable=False)
    vote_count = Column(Integer, nullable=False, default=0)

    poll = relationship("PollModel", back_populates="options")

    __table_args__ = (
        UniqueConstraint("poll_id", "position"),
    )


class PollVoteModel(Base):
    __tablename__ = "poll_votes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    poll_id = Column(Integer, ForeignKey("polls.id"), nullable=False)
    user_id = Column(String(64), ForeignKey("members.id"), nullable=False)
    option_index = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("poll_id", "user_id"),
        Index("ix_poll_votes_user_id", "user_id"),
    )
