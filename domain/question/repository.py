"""Repository abstraction for questions and their answers."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from .entity import Answer, Question


class QuestionRepository(ABC):

    @abstractmethod
    async def create(self, question: Question) -> Question:
        ...

    @abstractmethod
    async def get_by_id(self, question_id: int) -> Optional[Question]:
        """Return the question with its answers in creation order."""
        ...

    @abstractmethod
    async def add_answer(self, answer: Answer) -> Answer:
        ...

    @abstractmethod
    async def list_all(self) -> list[Question]:
        """Newest question first; answers oldest first."""
        ...
