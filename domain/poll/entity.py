"""
投票领域实体 - 投票聚合根与投票记录
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from domain.common.exceptions import StateError, ValidationError
from domain.common.text import clean_text

MIN_OPTIONS = 2


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def coerce_option_index(value: Any) -> int:
    """Shape check for a vote's option index.

    Integers and integral floats pass; booleans, strings (numeric or not)
    and everything else are rejected before any state is consulted.
    """
    if isinstance(value, bool):
        raise ValidationError("optionIndex must be an integer", field="optionIndex")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ValidationError("optionIndex must be an integer", field="optionIndex")


@dataclass
class Poll:
    """
    投票聚合根

    业务规则：
    1. 至少两个非空选项，计数与选项一一对应，初始为0
    2. 关闭状态单调：open -> closed，不可重新打开
    3. 计数只能通过新增投票记录增加
    """

    id: Optional[int]
    question: str
    options: list[str]
    counts: list[int]
    created_by: str
    is_closed: bool = False
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if len(self.counts) != len(self.options):
            raise ValueError("counts must be parallel to options")

    @classmethod
    def new(cls, question: Any, options: Any, created_by: str) -> "Poll":
        text = clean_text(question, field="question")
        if not isinstance(options, (list, tuple)):
            raise ValidationError("options must be a list", field="options")
        labels = [o.strip() for o in options if isinstance(o, str) and o.strip()]
        if len(labels) < MIN_OPTIONS:
            raise ValidationError(
                f"at least {MIN_OPTIONS} non-empty options are required",
                field="options",
                details={"min": MIN_OPTIONS, "given": len(labels)},
            )
        return cls(
            id=None,
            question=text,
            options=labels,
            counts=[0] * len(labels),
            created_by=created_by,
            created_at=_utcnow(),
        )

    def ensure_open(self) -> None:
        if self.is_closed:
            raise StateError("Poll is closed", details={"pollId": self.id})

    def ensure_option(self, index: int) -> None:
        if not 0 <= index < len(self.options):
            raise ValidationError(
                "optionIndex out of range",
                field="optionIndex",
                details={"min": 0, "max": len(self.options) - 1},
            )

    def close(self) -> bool:
        """Transition to closed; returns False when it already was."""
        if self.is_closed:
            return False
        self.is_closed = True
        return True

    def new_vote(self, user_id: str, option_index: Any) -> "PollVote":
        """Validate a vote against this poll: shape, then state, then range."""
        index = coerce_option_index(option_index)
        self.ensure_open()
        self.ensure_option(index)
        if self.id is None:
            raise ValueError("poll must be persisted before it can be voted on")
        return PollVote(id=None, poll_id=self.id, user_id=user_id, option_index=index, created_at=_utcnow())

    def with_counts(self, counts: Iterable[int]) -> "Poll":
        self.counts = list(counts)
        return self


@dataclass
class PollVote:
    """At most one per (poll_id, user_id); the store enforces it."""

    id: Optional[int]
    poll_id: int
    user_id: str
    option_index: int
    created_at: Optional[datetime] = None
