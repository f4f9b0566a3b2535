"""
公告领域实体 - 创建后不可变
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from domain.common.text import clean_text
from domain.member.entity import Identity


@dataclass
class Announcement:
    id: Optional[int]
    text: str
    author_id: str
    created_at: Optional[datetime] = None
    author: Optional[Identity] = None

    @classmethod
    def new(cls, text: str, author_id: str) -> "Announcement":
        return cls(
            id=None,
            text=clean_text(text),
            author_id=author_id,
            created_at=datetime.now(timezone.utc),
        )
