import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./quests-test.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-quest-api-tests")
os.environ.setdefault("CLOCK_SOURCE", "system")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Optional

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from quest_src.clock import ClockSource
from quest_src.db.db_connect import Database
from quest_src.db.models import Quest, QuestType, User
from quest_src.exceptions import ClockUnavailable
from quest_src.main import create_app


class FakeClock(ClockSource):
    def __init__(self, today: str = "2024-01-11"):
        self.current = today
        self.available = True
        self.calls = 0

    async def today(self) -> str:
        self.calls += 1
        if not self.available:
            raise ClockUnavailable("fake clock switched off")
        return self.current


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'quests.db'}"


@pytest_asyncio.fixture
async def database(database_url):
    db = Database(database_url)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def session(database):
    async with database.session_maker() as session:
        yield session


@pytest.fixture
def client(database_url, clock):
    app = create_app(database=Database(database_url), clock=clock)
    with TestClient(app) as test_client:
        yield test_client


_player_ids = iter(range(1, 10_000))


async def make_user(session, username: str, **fields) -> User:
    user = User(
        username=username,
        original_username=username,
        email_for_auth=f"{username}@questapp.local",
        password_hash="not-a-real-hash",
        display_name=username,
        custom_player_id=next(_player_ids),
        **fields,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


async def make_quest(session, user: User, name: str = "Drink water", xp: int = 10,
                     type: QuestType = QuestType.DAILY, is_completed: bool = False,
                     last_reset_date: Optional[str] = None) -> Quest:
    quest = Quest(
        user_id=user.id,
        name=name,
        xp=xp,
        type=type,
        is_completed=is_completed,
        last_reset_date=last_reset_date,
    )
    session.add(quest)
    await session.commit()
    await session.refresh(quest)
    return quest


def signup(client: TestClient, username: str = "Hero", password: str = "secret123") -> dict:
    response = client.post("/api/v1/auth/signup", json={"username": username, "password": password})
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
