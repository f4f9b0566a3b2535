import pytest

from infrastructure.realtime.connection_manager import ConnectionManager

from conftest import FakeSocket


@pytest.mark.asyncio
async def test_to_role_reaches_only_that_role():
    hub = ConnectionManager()
    judge_ws, org_ws, idle_ws = FakeSocket(), FakeSocket(), FakeSocket()
    judge = hub.register(judge_ws)
    organizer = hub.register(org_ws)
    hub.register(idle_ws)
    hub.set_role(judge.id, "judges")
    hub.set_role(organizer.id, "organizer")

    await hub.to_role("judges", "reminderReceived", {"message": "score now"})
    await hub.flush()

    assert judge_ws.events() == ["reminderReceived"]
    assert judge_ws.sent[0]["data"] == {"message": "score now"}
    assert judge_ws.sent[0]["ts"].endswith("Z")
    assert org_ws.sent == []
    assert idle_ws.sent == []
    await hub.aclose()


@pytest.mark.asyncio
async def test_to_all_and_to_connection():
    hub = ConnectionManager()
    a_ws, b_ws = FakeSocket(), FakeSocket()
    a = hub.register(a_ws)
    hub.register(b_ws)

    await hub.to_all("announcementCreated", {"id": 1})
    await hub.to_connection(a.id, "pollsSnapshot", [])
    await hub.to_connection("gone", "pollsSnapshot", [])
    await hub.flush()

    assert a_ws.events() == ["announcementCreated", "pollsSnapshot"]
    assert b_ws.events() == ["announcementCreated"]
    await hub.aclose()


@pytest.mark.asyncio
async def test_emit_with_nobody_connected_is_lost():
    hub = ConnectionManager()
    await hub.to_all("announcementCreated", {"id": 1})
    late_ws = FakeSocket()
    hub.register(late_ws)
    await hub.flush()
    assert late_ws.sent == []
    await hub.aclose()


@pytest.mark.asyncio
async def test_rejoining_moves_the_connection_and_unregister_is_idempotent():
    hub = ConnectionManager()
    conn = hub.register(FakeSocket())
    hub.set_role(conn.id, "participant")
    hub.set_role(conn.id, "judge")
    assert hub.role_members("participant") == set()
    assert hub.role_members("judge") == {conn.id}

    hub.unregister(conn.id)
    hub.unregister(conn.id)
    assert hub.role_members("judge") == set()
    assert len(hub) == 0
    assert hub.set_role(conn.id, "judge") is False


@pytest.mark.asyncio
async def test_drop_oldest_keeps_the_newest_frames():
    class StuckSocket(FakeSocket):
        async def send_json(self, data) -> None:
            raise RuntimeError("socket is gone")

    hub = ConnectionManager(queue_max=2, overflow_policy="drop_oldest")
    conn = hub.register(StuckSocket())
    # nothing has been drained yet: the sender task only starts on the next loop turn
    for i in range(4):
        hub._enqueue(conn.id, {"event": "tick", "data": i})
    queued = list(hub._send_queues[conn.id]._queue)
    assert [f["data"] for f in queued] == [2, 3]
    await hub.flush()
    await hub.aclose()


@pytest.mark.asyncio
async def test_send_failure_does_not_stop_other_connections():
    class BrokenSocket(FakeSocket):
        async def send_json(self, data) -> None:
            raise RuntimeError("connection reset")

    hub = ConnectionManager()
    hub.register(BrokenSocket())
    healthy = FakeSocket()
    hub.register(healthy)
    await hub.to_all("pollUpdate", {"id": 1, "counts": [1, 0]})
    await hub.flush()
    assert healthy.events() == ["pollUpdate"]
    await hub.aclose()
