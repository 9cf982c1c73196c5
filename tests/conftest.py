import os
import uuid

import pytest
from httpx import ASGITransport, AsyncClient

# IMPORTANT:
# Set env vars BEFORE importing app.core.config/app.main (settings load at import time)
os.environ["ENV"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("JWT_SECRET", "dev-test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("CORS_ORIGINS", "http://localhost:5173")

from app.db.session import Database  # noqa: E402
from app.main import create_app  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def database(tmp_path):
    """A fresh SQLite store per test, injected into the app instead of the
    one the lifespan would open."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def db_session(database):
    async with database.sessionmaker() as session:
        yield session


@pytest.fixture
def fastapi_app(database):
    return create_app(database=database)


@pytest.fixture
async def client(fastapi_app):
    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

# --- Small helpers ---

def _unique(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:10]}"


@pytest.fixture
def unique_str():
    return _unique


@pytest.fixture
def user_factory(unique_str):
    async def _create(
        client: AsyncClient,
        *,
        username: str | None = None,
        name: str | None = None,
        password: str = "SuperSecret123",
    ):
        username = username or unique_str("user")
        name = name or username
        r = await client.post(
            "/register",
            json={"username": username, "name": name, "password": password},
        )
        assert r.status_code == 200, r.text
        data = r.json()
        assert data["message"] == "User registered successfully"
        return {
            "id": data["id"],
            "username": username,
            "name": name,
            "password": password,
        }

    return _create


@pytest.fixture
def login_helper():
    async def _login(client: AsyncClient, *, username: str, password: str) -> str:
        r = await client.post("/login", json={"username": username, "password": password})
        assert r.status_code == 200, r.text
        token = r.json()["access_token"]
        assert token
        return token

    return _login


@pytest.fixture
def auth_headers():
    def _headers(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def authed_user(user_factory, login_helper, auth_headers):
    async def _create(client: AsyncClient, **kwargs):
        user = await user_factory(client, **kwargs)
        token = await login_helper(client, username=user["username"], password=user["password"])
        user["token"] = token
        user["headers"] = auth_headers(token)
        return user

    return _create
