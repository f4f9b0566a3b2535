"""
问答领域实体 - 问题聚合及其只追加的回答
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from domain.common.text import clean_text
from domain.member.entity import Identity


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Answer:
    id: Optional[int]
    question_id: int
    text: str
    answerer_id: str
    created_at: Optional[datetime] = None
    answerer: Optional[Identity] = None


@dataclass
class Question:
    """
    问题聚合根

    业务规则：
    1. 任何已认证用户都可以提问
    2. 回答只追加，保持创建顺序
    3. 问题不会被删除
    """

    id: Optional[int]
    text: str
    asker_id: str
    created_at: Optional[datetime] = None
    answers: list[Answer] = field(default_factory=list)
    asker: Optional[Identity] = None

    @classmethod
    def new(cls, text: str, asker_id: str) -> "Question":
        return cls(id=None, text=clean_text(text), asker_id=asker_id, created_at=_utcnow())

    def new_answer(self, text: str, answerer_id: str) -> Answer:
        if self.id is None:
            raise ValueError("question must be persisted before it can be answered")
        return Answer(
            id=None,
            question_id=self.id,
            text=clean_text(text),
            answerer_id=answerer_id,
            created_at=_utcnow(),
        )

    def append_answer(self, answer: Answer) -> None:
        self.answers.append(answer)

    def member_ids(self) -> set[str]:
        return {self.asker_id, *(a.answerer_id for a in self.answers)}
