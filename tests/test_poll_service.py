import asyncio

import pytest

from application.services.poll_service import PollService
from domain.common.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    StateError,
    ValidationError,
)
from domain.member import Identity, Role
from infrastructure.memory_store import memory_uow_factory

from conftest import ALICE, BOB, ORGANIZER


@pytest.mark.asyncio
async def test_best_track_scenario(uow_factory, hub):
    svc = PollService(uow_factory=uow_factory, hub=hub)

    poll = await svc.create(ORGANIZER, "Best track?", ["AI", "Web3"])
    assert poll.counts == [0, 0]
    assert poll.is_closed is False
    assert hub.last("newPoll") == {
        "id": poll.id,
        "question": "Best track?",
        "options": ["AI", "Web3"],
        "counts": [0, 0],
        "isClosed": False,
    }

    result = await svc.vote(ALICE, poll.id, 0)
    assert result.poll.counts == [1, 0]
    assert result.my_vote == 0
    assert hub.last("pollUpdate") == {"id": poll.id, "counts": [1, 0]}

    with pytest.raises(ConflictError) as ei:
        await svc.vote(ALICE, poll.id, 1)
    assert ei.value.details["myVote"] == 0
    assert ei.value.details["counts"] == [1, 0]

    closed = await svc.close(ORGANIZER, poll.id)
    assert closed.is_closed is True
    assert hub.last("pollClosed") == {"id": poll.id}

    with pytest.raises(StateError):
        await svc.vote(BOB, poll.id, 1)

    [view] = await svc.list(ALICE)
    assert view.counts == [1, 0]
    assert view.is_closed is True
    assert view.my_vote == 0
    assert hub.events() == ["newPoll", "pollUpdate", "pollClosed"]


@pytest.mark.asyncio
async def test_counts_match_distinct_voters(uow_factory, hub):
    svc = PollService(uow_factory=uow_factory, hub=hub)
    poll = await svc.create(ORGANIZER, "Pizza?", ["Margherita", "Pepperoni", "Veggie"])
    choices = [0, 2, 2, 1, 2, 0, 2]
    for n, choice in enumerate(choices):
        voter = Identity(id=f"voter-{n}", name=f"Voter {n}", role=Role.PARTICIPANT)
        await svc.vote(voter, poll.id, choice)

    [view] = await svc.list()
    assert view.counts == [choices.count(0), choices.count(1), choices.count(2)]
    assert sum(view.counts) == len(choices)
    assert view.my_vote is None


@pytest.mark.asyncio
async def test_vote_errors_leave_counts_unchanged(uow_factory, hub):
    svc = PollService(uow_factory=uow_factory, hub=hub)
    poll = await svc.create(ORGANIZER, "Q", ["a", "b"])

    with pytest.raises(NotFoundError):
        await svc.vote(ALICE, 12345, 0)
    for bad in ("0", True, 1.5, None):
        with pytest.raises(ValidationError):
            await svc.vote(ALICE, poll.id, bad)
    for out_of_range in (-1, 2):
        with pytest.raises(ValidationError):
            await svc.vote(ALICE, poll.id, out_of_range)

    [view] = await svc.list(ALICE)
    assert view.counts == [0, 0]
    assert view.my_vote is None
    assert "pollUpdate" not in hub.events()


@pytest.mark.asyncio
async def test_integral_float_index_is_accepted(uow_factory, hub):
    svc = PollService(uow_factory=uow_factory, hub=hub)
    poll = await svc.create(ORGANIZER, "Q", ["a", "b"])
    result = await svc.vote(ALICE, poll.id, 1.0)
    assert result.my_vote == 1
    assert result.poll.counts == [0, 1]


@pytest.mark.asyncio
async def test_create_rules(uow_factory, hub):
    svc = PollService(uow_factory=uow_factory, hub=hub)
    with pytest.raises(AuthorizationError):
        await svc.create(ALICE, "Q", ["a", "b"])
    with pytest.raises(ValidationError):
        await svc.create(ORGANIZER, "Q", ["a", "   "])
    with pytest.raises(ValidationError):
        await svc.create(ORGANIZER, "  ", ["a", "b"])
    assert await svc.list() == []
    assert hub.frames == []


@pytest.mark.asyncio
async def test_close_twice_is_a_quiet_noop(uow_factory, hub):
    svc = PollService(uow_factory=uow_factory, hub=hub)
    poll = await svc.create(ORGANIZER, "Q", ["a", "b"])
    await svc.close(ORGANIZER, poll.id)
    again = await svc.close(ORGANIZER, poll.id)
    assert again.is_closed is True
    assert hub.events().count("pollClosed") == 1


@pytest.mark.asyncio
async def test_close_rules(uow_factory, hub):
    svc = PollService(uow_factory=uow_factory, hub=hub)
    poll = await svc.create(ORGANIZER, "Q", ["a", "b"])
    with pytest.raises(AuthorizationError):
        await svc.close(ALICE, poll.id)
    with pytest.raises(NotFoundError):
        await svc.close(ORGANIZER, poll.id + 100)
    [view] = await svc.list()
    assert view.is_closed is False


@pytest.mark.asyncio
async def test_list_projects_each_callers_own_vote(uow_factory, hub):
    svc = PollService(uow_factory=uow_factory, hub=hub)
    first = await svc.create(ORGANIZER, "First", ["a", "b"])
    second = await svc.create(ORGANIZER, "Second", ["x", "y"])
    await svc.vote(ALICE, first.id, 1)
    await svc.vote(BOB, second.id, 0)

    alice_view = {p.id: p.my_vote for p in await svc.list(ALICE)}
    bob_view = {p.id: p.my_vote for p in await svc.list(BOB)}
    assert alice_view == {first.id: 1, second.id: None}
    assert bob_view == {first.id: None, second.id: 0}
    assert [p.id for p in await svc.list()] == [second.id, first.id]


@pytest.mark.asyncio
async def test_concurrent_double_vote_has_exactly_one_winner(hub):
    svc = PollService(uow_factory=memory_uow_factory(), hub=hub)
    poll = await svc.create(ORGANIZER, "Q", ["a", "b"])

    results = await asyncio.gather(
        svc.vote(ALICE, poll.id, 0),
        svc.vote(ALICE, poll.id, 1),
        return_exceptions=True,
    )
    conflicts = [r for r in results if isinstance(r, ConflictError)]
    wins = [r for r in results if not isinstance(r, Exception)]
    assert len(conflicts) == 1 and len(wins) == 1
    [view] = await svc.list(ALICE)
    assert sum(view.counts) == 1
    assert view.my_vote == wins[0].my_vote
