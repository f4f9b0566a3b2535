import pytest

from application.services.question_service import QuestionService
from domain.common.exceptions import AuthorizationError, NotFoundError, ValidationError

from conftest import ALICE, BOB, ORGANIZER


@pytest.mark.asyncio
async def test_ask_then_answer_rebroadcasts_full_question(uow_factory, hub):
    svc = QuestionService(uow_factory=uow_factory, hub=hub)

    asked = await svc.ask(ALICE, "When is lunch?")
    assert asked.answers == []
    assert hub.last("questionCreated")["text"] == "When is lunch?"

    answered = await svc.answer(ORGANIZER, asked.id, "1pm")
    assert [a.text for a in answered.answers] == ["1pm"]
    assert answered.answers[0].answerer.name == "Olivia"

    payload = hub.last("answerCreated")
    assert payload["questionId"] == asked.id
    assert payload["question"]["id"] == asked.id
    assert payload["question"]["text"] == "When is lunch?"
    assert [a["text"] for a in payload["question"]["answers"]] == ["1pm"]
    assert payload["question"]["asker"]["name"] == "Alice"


@pytest.mark.asyncio
async def test_answers_keep_creation_order_and_list_is_newest_first(uow_factory, hub):
    svc = QuestionService(uow_factory=uow_factory, hub=hub)
    first = await svc.ask(ALICE, "Is there wifi?")
    second = await svc.ask(BOB, "Where do we park?")
    await svc.answer(ORGANIZER, first.id, "Yes")
    await svc.answer(ORGANIZER, first.id, "Password is on the wall")

    listed = await svc.list()
    assert [q.id for q in listed] == [second.id, first.id]
    assert [a.text for a in listed[1].answers] == ["Yes", "Password is on the wall"]
    assert listed[0].asker.name == "Bob"


@pytest.mark.asyncio
async def test_answer_missing_question_is_not_found_and_not_persisted(uow_factory, hub):
    svc = QuestionService(uow_factory=uow_factory, hub=hub)
    with pytest.raises(NotFoundError):
        await svc.answer(ORGANIZER, 999, "nobody asked")
    assert await svc.list() == []
    assert hub.frames == []


@pytest.mark.asyncio
async def test_answer_rules(uow_factory, hub):
    svc = QuestionService(uow_factory=uow_factory, hub=hub)
    asked = await svc.ask(ALICE, "Any vegan food?")
    with pytest.raises(AuthorizationError):
        await svc.answer(BOB, asked.id, "yes")
    with pytest.raises(ValidationError):
        await svc.answer(ORGANIZER, asked.id, "   ")
    with pytest.raises(ValidationError):
        await svc.ask(ALICE, "")
    listed = await svc.list()
    assert listed[0].answers == []
    assert hub.events() == ["questionCreated"]
