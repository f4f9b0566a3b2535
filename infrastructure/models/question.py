"""
问答数据库模型：问题与只追加的回答
"""
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class QuestionModel(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    text = Column(Text, nullable=False)
    asker_id = Column(String(64), ForeignKey("members.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    answers = relationship(
        "AnswerModel",
        back_populates="question",
        order_by="AnswerModel.id",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_questions_created_at", "created_at"),
    )


class AnswerModel(Base):
    __tablename__ = "answers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    question_id = Column(Integer, ForeignKey("questions.id"), nullable=False)
    text = Column(Text, nullable=False)
    answerer_id = Column(String(64), ForeignKey("members.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    question = relationship("QuestionModel", back_populates="answers")

    __table_args__ = (
        Index("ix_answers_question_created", "question_id", "created_at"),
    )
