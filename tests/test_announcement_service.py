import pytest

from application.services.announcement_service import AnnouncementService
from domain.common.exceptions import AuthorizationError, ValidationError

from conftest import ALICE, ORGANIZER


@pytest.mark.asyncio
async def test_create_then_list_round_trip(uow_factory, hub):
    svc = AnnouncementService(uow_factory=uow_factory, hub=hub)
    created = await svc.create(ORGANIZER, "  Lunch is served in Hall B  ")
    assert created.text == "Lunch is served in Hall B"

    listed = await svc.list()
    assert [a.id for a in listed] == [created.id]
    assert listed[0].text == "Lunch is served in Hall B"
    assert listed[0].author.name == "Olivia"
    assert listed[0].author.role == "organizer"

    assert hub.events() == ["announcementCreated"]
    payload = hub.last("announcementCreated")
    assert payload["text"] == "Lunch is served in Hall B"
    assert payload["authorId"] == "org-1"
    assert payload["createdAt"].endswith("Z")


@pytest.mark.asyncio
async def test_list_is_newest_first_and_limited(uow_factory, hub):
    svc = AnnouncementService(uow_factory=uow_factory, hub=hub)
    for i in range(3):
        await svc.create(ORGANIZER, f"update {i}")
    listed = await svc.list(limit=2)
    assert [a.text for a in listed] == ["update 2", "update 1"]


@pytest.mark.asyncio
async def test_blank_text_is_rejected_without_broadcast(uow_factory, hub):
    svc = AnnouncementService(uow_factory=uow_factory, hub=hub)
    with pytest.raises(ValidationError):
        await svc.create(ORGANIZER, "   ")
    assert hub.frames == []
    assert await svc.list() == []


@pytest.mark.asyncio
async def test_participant_cannot_announce(uow_factory, hub):
    svc = AnnouncementService(uow_factory=uow_factory, hub=hub)
    with pytest.raises(AuthorizationError):
        await svc.create(ALICE, "I am not an organizer")
    assert hub.frames == []
    assert await svc.list() == []


@pytest.mark.asyncio
async def test_reminder_targets_one_role(hub):
    svc = AnnouncementService(uow_factory=None, hub=hub)
    reminder = await svc.send_reminder(ORGANIZER, "judge", " Scores due at 5pm ")
    assert reminder.message == "Scores due at 5pm"
    assert hub.frames[0][:3] == ("role", "judge", "reminderReceived")
    payload = hub.frames[0][3]
    assert payload["from"]["name"] == "Olivia"
    assert payload["message"] == "Scores due at 5pm"


@pytest.mark.asyncio
async def test_reminder_is_organizer_only(hub):
    svc = AnnouncementService(uow_factory=None, hub=hub)
    with pytest.raises(AuthorizationError):
        await svc.send_reminder(ALICE, "judge", "hello")
    with pytest.raises(ValidationError):
        await svc.send_reminder(ORGANIZER, "  ", "hello")
    assert hub.frames == []
