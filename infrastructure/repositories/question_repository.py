"""SQLAlchemy-backed repository for questions and answers."""
from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.question import Answer, Question, QuestionRepository
from infrastructure.models.base import as_utc, storable_id
from infrastructure.models.question import AnswerModel, QuestionModel
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyQuestionRepository(QuestionRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _answer_to_entity(model: AnswerModel) -> Answer:
        return Answer(
            id=model.id,
            question_id=model.question_id,
            text=model.text,
            answerer_id=model.answerer_id,
            created_at=as_utc(model.created_at),
        )

    def _to_entity(self, model: QuestionModel) -> Question:
        # answers relationship is selectin-loaded, ordered by id (= creation order)
        return Question(
            id=model.id,
            text=model.text,
            asker_id=model.asker_id,
            created_at=as_utc(model.created_at),
            answers=[self._answer_to_entity(a) for a in model.answers],
        )

    async def create(self, question: Question) -> Question:
        model = QuestionModel(
            text=question.text,
            asker_id=question.asker_id,
            created_at=question.created_at,
        )
        self.session.add(model)
        await self.session.flush()
        logger.info("question_created", question_id=model.id, asker_id=model.asker_id)
        return Question(
            id=model.id,
            text=model.text,
            asker_id=model.asker_id,
            created_at=as_utc(model.created_at),
            answers=[],
        )

    async def get_by_id(self, question_id: int) -> Optional[Question]:
        if not storable_id(question_id):
            return None
        result = await self.session.execute(
            select(QuestionModel).where(QuestionModel.id == question_id)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def add_answer(self, answer: Answer) -> Answer:
        model = AnswerModel(
            question_id=answer.question_id,
            text=answer.text,
            answerer_id=answer.answerer_id,
            created_at=answer.created_at,
        )
        self.session.add(model)
        await self.session.flush()
        logger.info("answer_created", answer_id=model.id, question_id=model.question_id)
        return self._answer_to_entity(model)

    async def list_all(self) -> list[Question]:
        result = await self.session.execute(
            select(QuestionModel).order_by(QuestionModel.created_at.desc(), QuestionModel.id.desc())
        )
        return [self._to_entity(m) for m in result.scalars().all()]
