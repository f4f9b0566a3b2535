"""
问答应用服务 - 提问与组织者回答
"""
from __future__ import annotations

from typing import Callable

from application.dto import AnswerCreatedDTO, QuestionDTO
from application.ports.realtime import BroadcastPort
from application.services.fanout import write_then_fanout
from domain.common.exceptions import NotFoundError
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.member import Identity
from domain.question import Question


class QuestionService:
    def __init__(self, *, uow_factory: Callable[..., AbstractUnitOfWork], hub: BroadcastPort):
        self._uow_factory = uow_factory
        self._hub = hub

    async def ask(self, identity: Identity, text) -> QuestionDTO:
        """任何已认证用户都可以提问"""

        async def persist(draft: Question) -> QuestionDTO:
            async with self._uow_factory() as uow:
                await uow.member_repository.upsert(identity)
                saved = await uow.question_repository.create(draft)
            saved.asker = identity
            return QuestionDTO.from_entity(saved)

        return await write_then_fanout(
            validate=lambda: Question.new(text, identity.id),
            persist=persist,
            event="questionCreated",
            shape=lambda dto: dto.payload(),
            broadcast=self._hub.to_all,
        )

    async def answer(self, identity: Identity, question_id: int, text) -> QuestionDTO:
        """
        追加回答（仅组织者）

        广播完整的问题记录而不是增量，客户端可以整体替换本地视图。
        """

        def validate() -> None:
            identity.ensure_organizer()

        async def persist(_: None) -> QuestionDTO:
            async with self._uow_factory() as uow:
                question = await uow.question_repository.get_by_id(question_id)
                if question is None:
                    raise NotFoundError("Question", question_id)
                draft = question.new_answer(text, identity.id)
                await uow.member_repository.upsert(identity)
                saved = await uow.question_repository.add_answer(draft)
                question.append_answer(saved)
                members = await uow.member_repository.get_many(question.member_ids())
            return self._resolve(question, members)

        return await write_then_fanout(
            validate=validate,
            persist=persist,
            event="answerCreated",
            shape=lambda dto: AnswerCreatedDTO(question_id=dto.id, question=dto).payload(),
            broadcast=self._hub.to_all,
        )

    async def list(self) -> list[QuestionDTO]:
        """全部问题（新的在前），回答按创建顺序"""
        async with self._uow_factory(readonly=True) as uow:
            questions = await uow.question_repository.list_all()
            ids: set[str] = set()
            for q in questions:
                ids |= q.member_ids()
            members = await uow.member_repository.get_many(ids)
        return [self._resolve(q, members) for q in questions]

    @staticmethod
    def _resolve(question: Question, members: dict) -> QuestionDTO:
        question.asker = members.get(question.asker_id)
        for a in question.answers:
            a.answerer = members.get(a.answerer_id)
        return QuestionDTO.from_entity(question)
