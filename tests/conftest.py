"""Pytest bootstrap configuration.

Ensure mandatory environment variables are set before test collection
and module imports that depend on application settings.
"""
import os

# Mandatory secret key for settings validation
os.environ.setdefault("SECRET_KEY", "test-secret-key")
# The app under TestClient runs on the in-memory store; SQL tests build their own engine
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("DATABASE__URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REALTIME_WS_IDLE_PING_INTERVAL_S", "0")
os.environ.setdefault("LOG_REQUEST_BODY_ENABLE_BY_DEFAULT", "false")

import jwt
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from core.config import settings
from domain.member import Identity, Role
from infrastructure.database import create_tables
from infrastructure.memory_store import memory_uow_factory
from infrastructure.unit_of_work import sqlalchemy_uow_factory


ORGANIZER = Identity(id="org-1", name="Olivia", role=Role.ORGANIZER)
ALICE = Identity(id="user-a", name="Alice", role=Role.PARTICIPANT)
BOB = Identity(id="user-b", name="Bob", role=Role.PARTICIPANT)
JUDGE = Identity(id="judge-1", name="Jun", role=Role.JUDGE)


class RecordingHub:
    """BroadcastPort double that remembers every emit."""

    def __init__(self) -> None:
        self.frames: list[tuple[str, str | None, str, object]] = []

    async def to_all(self, event, payload):
        self.frames.append(("all", None, event, payload))

    async def to_role(self, role, event, payload):
        self.frames.append(("role", role, event, payload))

    async def to_connection(self, connection_id, event, payload):
        self.frames.append(("connection", connection_id, event, payload))

    def events(self) -> list[str]:
        return [f[2] for f in self.frames]

    def last(self, event: str):
        for _, _, name, payload in reversed(self.frames):
            if name == event:
                return payload
        raise AssertionError(f"no {event} frame recorded")


class FakeSocket:
    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.closed_with: int | None = None

    async def send_json(self, data) -> None:
        self.sent.append(data)

    async def close(self, code: int = 1000) -> None:
        self.closed_with = code

    def events(self) -> list[str]:
        return [frame["event"] for frame in self.sent]


def make_token(identity: Identity, **extra) -> str:
    claims = {"sub": identity.id, "name": identity.name, "role": identity.role.value, **extra}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


@pytest.fixture
def hub() -> RecordingHub:
    return RecordingHub()


@pytest_asyncio.fixture
async def sql_uow_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'live.db'}")
    await create_tables(bind=engine)
    factory = sqlalchemy_uow_factory(async_sessionmaker(bind=engine, expire_on_commit=False))
    yield factory
    await engine.dispose()


@pytest_asyncio.fixture(params=["memory", "sql"])
async def uow_factory(request, tmp_path):
    """Run store-backed tests against both backends."""
    if request.param == "memory":
        yield memory_uow_factory()
        return
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'live.db'}")
    await create_tables(bind=engine)
    yield sqlalchemy_uow_factory(async_sessionmaker(bind=engine, expire_on_commit=False))
    await engine.dispose()
