import asyncio
import os

# Settings are read once, so the environment has to be ready before hackportal is imported.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ADMIN_EMAILS"] = "admin@hackportal.dev"
os.environ["MAX_TEAM_SIZE"] = "5"
os.environ["ROUND_COUNT"] = "3"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from hackportal.db.database import DataBase
from hackportal.main import create_app

PASSWORD = "Secr3t!pass"
ADMIN_EMAIL = "admin@hackportal.dev"


@pytest.fixture
def db(tmp_path) -> DataBase:
    """A DataBase bound to a fresh SQLite file for this test."""
    database = DataBase()
    database.bind(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    asyncio.run(database.create_all())
    yield database
    asyncio.run(database.dispose())


@pytest.fixture
def client(db) -> TestClient:
    with TestClient(create_app()) as test_client:
        yield test_client


class Account:
    def __init__(self, client: TestClient, user_id: int, email: str, token: str) -> None:
        self.client = client
        self.id = user_id
        self.email = email
        self.token = token

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    def get(self, url: str, **kwargs):
        return self.client.get(url, headers=self.headers, **kwargs)

    def post(self, url: str, **kwargs):
        return self.client.post(url, headers=self.headers, **kwargs)

    def patch(self, url: str, **kwargs):
        return self.client.patch(url, headers=self.headers, **kwargs)

    def put(self, url: str, **kwargs):
        return self.client.put(url, headers=self.headers, **kwargs)

    def delete(self, url: str, **kwargs):
        return self.client.delete(url, headers=self.headers, **kwargs)


@pytest.fixture
def signup(client):
    """Register an account and log it in: ``signup("ava")`` -> Account."""

    def _signup(username: str, *, judge: bool = False, email: str | None = None, **extra) -> Account:
        email = email or f"{username}@demo.com"
        body = {
            "email": email,
            "password": PASSWORD,
            "confirmPassword": PASSWORD,
            "username": username,
            "isJudge": judge,
            **extra,
        }
        resp = client.post("/api/register", json=body)
        assert resp.status_code == 201, resp.text
        user_id = resp.json()["user"]["id"]

        resp = client.post("/api/login", json={"email": email, "password": PASSWORD})
        assert resp.status_code == 200, resp.text
        return Account(client, user_id, email, resp.json()["token"])

    return _signup


@pytest.fixture
def admin(signup) -> Account:
    return signup("admin", email=ADMIN_EMAIL)


@pytest.fixture
def make_team(signup):
    """Create a team led by a new account: ``make_team("Alpha")`` -> (leader, team json)."""

    def _make_team(name: str, leader: Account | None = None, track: str = "Software"):
        leader = leader or signup(f"lead.{name.lower().replace(' ', '.')}")
        resp = leader.post("/api/teams", json={"teamName": name, "track": track})
        assert resp.status_code == 201, resp.text
        return leader, resp.json()

    return _make_team
