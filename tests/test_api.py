"""HTTP routes and the live socket, end to end on the in-memory store."""
import pytest
from fastapi.testclient import TestClient

from main import app

from conftest import ALICE, BOB, JUDGE, ORGANIZER, make_token


def _auth(identity) -> dict:
    return {"Authorization": f"Bearer {make_token(identity)}"}


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def test_health(client):
    body = client.get("/health").json()
    assert body["code"] == 0
    assert body["data"]["status"] == "healthy"


def test_announcement_round_trip(client):
    resp = client.post("/api/v1/announcements", json={"text": "  Doors open at 9  "}, headers=_auth(ORGANIZER))
    assert resp.status_code == 200
    created = resp.json()["data"]
    assert created["text"] == "Doors open at 9"
    assert created["author"] == {"id": "org-1", "name": "Olivia", "role": "organizer"}

    listed = client.get("/api/v1/announcements").json()["data"]
    assert listed[0]["id"] == created["id"]
    assert listed[0]["text"] == "Doors open at 9"


def test_error_envelope_and_status_codes(client):
    resp = client.post("/api/v1/announcements", json={"text": "hi"})
    assert resp.status_code == 401
    assert resp.json()["error"]["type"] == "Unauthorized"

    resp = client.post("/api/v1/announcements", json={"text": "hi"}, headers=_auth(ALICE))
    assert resp.status_code == 403
    assert resp.json()["code"] == 30002

    resp = client.post("/api/v1/announcements", json={"text": "   "}, headers=_auth(ORGANIZER))
    assert resp.status_code == 422
    assert resp.json()["error"]["type"] == "ValidationError"

    resp = client.post("/api/v1/questions/999/answers", json={"text": "1pm"}, headers=_auth(ORGANIZER))
    assert resp.status_code == 404

    for missing in (0, 2**70):
        resp = client.post(f"/api/v1/polls/{missing}/votes", json={"optionIndex": 0}, headers=_auth(ALICE))
        assert resp.status_code == 404
        assert resp.json()["error"]["type"] == "NotFoundError"
    resp = client.post(f"/api/v1/questions/{2**70}/answers", json={"text": "1pm"}, headers=_auth(ORGANIZER))
    assert resp.status_code == 404


def test_poll_flow_over_http(client):
    resp = client.post(
        "/api/v1/polls",
        json={"question": "Best track?", "options": ["AI", " ", "Web3"]},
        headers=_auth(ORGANIZER),
    )
    poll = resp.json()["data"]
    assert poll["options"] == ["AI", "Web3"]
    assert poll["counts"] == [0, 0]
    assert poll["isClosed"] is False

    vote = client.post(f"/api/v1/polls/{poll['id']}/votes", json={"optionIndex": 0}, headers=_auth(ALICE))
    assert vote.status_code == 200
    assert vote.json()["data"]["myVote"] == 0

    again = client.post(f"/api/v1/polls/{poll['id']}/votes", json={"optionIndex": 1}, headers=_auth(ALICE))
    assert again.status_code == 409
    assert again.json()["error"]["details"]["myVote"] == 0

    bad = client.post(f"/api/v1/polls/{poll['id']}/votes", json={"optionIndex": "1"}, headers=_auth(BOB))
    assert bad.status_code == 422

    closed = client.post(f"/api/v1/polls/{poll['id']}/close", headers=_auth(ORGANIZER))
    assert closed.json()["data"]["isClosed"] is True

    late = client.post(f"/api/v1/polls/{poll['id']}/votes", json={"optionIndex": 1}, headers=_auth(BOB))
    assert late.status_code == 409
    assert late.json()["error"]["type"] == "StateError"

    mine = client.get("/api/v1/polls", headers=_auth(ALICE)).json()["data"]
    assert mine[0]["counts"] == [1, 0]
    assert mine[0]["myVote"] == 0
    anonymous = client.get("/api/v1/polls").json()["data"]
    assert anonymous[0]["myVote"] is None


def test_socket_receives_broadcasts_and_snapshots(client):
    with client.websocket_connect(f"/api/v1/ws?token={make_token(ALICE)}") as ws:
        ws.send_json({"event": "requestPolls"})
        snapshot = ws.receive_json()
        assert snapshot["event"] == "pollsSnapshot"
        assert snapshot["data"] == []

        created = client.post(
            "/api/v1/polls", json={"question": "Lunch?", "options": ["Pizza", "Sushi"]}, headers=_auth(ORGANIZER)
        ).json()["data"]
        frame = ws.receive_json()
        assert frame["event"] == "newPoll"
        assert frame["data"]["id"] == created["id"]

        ws.send_json({"event": "votePoll", "data": {"pollId": created["id"], "optionIndex": 1}})
        frame = ws.receive_json()
        assert frame == {"event": "pollUpdate", "data": {"id": created["id"], "counts": [0, 1]}, "ts": frame["ts"]}

        ws.send_json({"event": "votePoll", "data": {"pollId": created["id"], "optionIndex": 0}})
        frame = ws.receive_json()
        assert frame["event"] == "error"
        assert frame["data"]["code"] == 20007
        assert frame["data"]["event"] == "votePoll"

        # malformed frames are ignored and the socket stays open
        ws.send_text("not json")
        ws.send_json({"event": "votePoll", "data": "nonsense"})
        ws.send_json({"event": "ping"})
        assert ws.receive_json()["event"] == "pong"


def test_anonymous_socket_can_read_but_not_write(client):
    with client.websocket_connect("/api/v1/ws") as ws:
        ws.send_json({"event": "sendQuestion", "data": "Is it anonymous?"})
        frame = ws.receive_json()
        assert frame["event"] == "error"
        assert frame["data"]["type"] == "Unauthorized"

        ws.send_json({"event": "requestSnapshot", "data": "questions"})
        assert ws.receive_json()["event"] == "questionsSnapshot"


def test_reminder_reaches_only_the_joined_role(client):
    judge_url = f"/api/v1/ws?token={make_token(JUDGE)}"
    with client.websocket_connect(judge_url) as judge_ws, client.websocket_connect("/api/v1/ws") as other_ws:
        judge_ws.send_json({"event": "joinRole", "data": "judge"})
        other_ws.send_json({"event": "joinRole", "data": "participant"})
        # round-trip a ping on each socket so both joinRole frames are processed
        judge_ws.send_json({"event": "ping"})
        assert judge_ws.receive_json()["event"] == "pong"
        other_ws.send_json({"event": "ping"})
        assert other_ws.receive_json()["event"] == "pong"

        resp = client.post(
            "/api/v1/reminders", json={"role": "judge", "message": "Scores due at 5pm"}, headers=_auth(ORGANIZER)
        )
        assert resp.status_code == 200

        frame = judge_ws.receive_json()
        assert frame["event"] == "reminderReceived"
        assert frame["data"]["message"] == "Scores due at 5pm"

        other_ws.send_json({"event": "ping"})
        assert other_ws.receive_json()["event"] == "pong"


def test_question_answer_over_socket(client):
    with client.websocket_connect(f"/api/v1/ws?token={make_token(ORGANIZER)}") as ws:
        ws.send_json({"event": "sendQuestion", "data": {"text": "Where is the stage?"}})
        question = ws.receive_json()
        assert question["event"] == "questionCreated"

        ws.send_json({"event": "sendAnswer", "data": {"questionId": question["data"]["id"], "answer": "Hall A"}})
        answered = ws.receive_json()
        assert answered["event"] == "answerCreated"
        assert answered["data"]["questionId"] == question["data"]["id"]
        assert answered["data"]["question"]["answers"][0]["text"] == "Hall A"


def test_invalid_token_closes_the_socket(client):
    from starlette.websockets import WebSocketDisconnect

    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/api/v1/ws?token=not-a-jwt") as ws:
            ws.receive_json()


def test_binary_and_unknown_id_frames_keep_the_session_open(client):
    with client.websocket_connect(f"/api/v1/ws?token={make_token(ALICE)}") as ws:
        ws.send_bytes(b'{"event":"ping"}')
        ws.send_json({"event": "ping"})
        assert ws.receive_json()["event"] == "pong"

        ws.send_json({"event": "votePoll", "data": {"pollId": 2**70, "optionIndex": 0}})
        frame = ws.receive_json()
        assert frame["event"] == "error"
        assert frame["data"]["type"] == "NotFoundError"

        ws.send_json({"event": "ping"})
        assert ws.receive_json()["event"] == "pong"
