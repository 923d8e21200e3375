"""
Integration tests for the blog API against PostgreSQL.

Tests cover:
- The data accessor and repositories against a real server
- The full HTTP round trip through the application lifespan
- Propagated failures when the schema is missing

These tests use testcontainers to spin up a real PostgreSQL instance and
are skipped when no Docker daemon is reachable.
"""

import asyncio
import pytest
from contextlib import asynccontextmanager

import asyncpg

docker = pytest.importorskip("docker")
postgres_module = pytest.importorskip("testcontainers.postgres")

from fastapi.testclient import TestClient

import blog.src.main as main_module
from blog.src.config import Settings
from blog.src.database import Database
from blog.src.repositories.post_repo import PostRepository
from blog.src.repositories.user_repo import UserRepository

pytestmark = pytest.mark.integration


SCHEMA_SQL = """
    CREATE TABLE "user" (
        id SERIAL PRIMARY KEY,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        first_name TEXT NOT NULL,
        last_name TEXT NOT NULL,
        email TEXT NOT NULL UNIQUE
    );

    CREATE TABLE post (
        id SERIAL PRIMARY KEY,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        title TEXT NOT NULL,
        content TEXT NOT NULL,
        user_id INTEGER NOT NULL REFERENCES "user" (id)
    );

    INSERT INTO "user" (first_name, last_name, email) VALUES
        ('Ada', 'Lovelace', 'ada@example.com'),
        ('Alan', 'Turing', 'alan@example.com');

    INSERT INTO post (title, content, user_id) VALUES
        ('First post', 'Hello, world', 1);
"""


def _docker_available() -> bool:
    try:
        docker.from_env().ping()
        return True
    except Exception:
        return False


# ============================================================================
# PYTEST FIXTURES
# ============================================================================


@pytest.fixture(scope="module")
def postgres_container():
    """Create PostgreSQL testcontainer."""
    if not _docker_available():
        pytest.skip("Docker daemon not available")

    with postgres_module.PostgresContainer("postgres:16-alpine") as postgres:
        yield postgres


@pytest.fixture(scope="module")
def database_url(postgres_container):
    """Connection URL of the seeded database."""
    url = postgres_container.get_connection_url(driver=None)

    async def seed():
        conn = await asyncpg.connect(url)
        try:
            await conn.execute(SCHEMA_SQL)
        finally:
            await conn.close()

    asyncio.run(seed())
    return url


@asynccontextmanager
async def database(url: str):
    pool = await asyncpg.create_pool(url, min_size=1, max_size=2)
    try:
        yield Database(pool)
    finally:
        await pool.close()


# ============================================================================
# DATA ACCESS
# ============================================================================


class TestRepositoriesAgainstPostgres:
    """Repositories running real SQL."""

    @pytest.mark.asyncio
    async def test_list_users(self, database_url):
        async with database(database_url) as db:
            users = await UserRepository(db).list_users()

        assert {user["email"] for user in users} >= {"ada@example.com", "alan@example.com"}
        assert set(users[0]) == {"id", "created_at", "updated_at", "first_name", "last_name", "email"}

    @pytest.mark.asyncio
    async def test_get_post(self, database_url):
        async with database(database_url) as db:
            rows = await PostRepository(db).get_post(1)
            missing = await PostRepository(db).get_post(999999)
            beyond_integer = await PostRepository(db).get_post(9999999999)

        assert len(rows) == 1
        assert rows[0]["content"] == "Hello, world"
        assert missing == []
        assert beyond_integer == []

    @pytest.mark.asyncio
    async def test_create_post_reports_one_row(self, database_url):
        async with database(database_url) as db:
            outcome = await PostRepository(db).create_post("Integration", "Body", 2)
            rows = await db.get_results(
                "SELECT user_id FROM post WHERE title = $1", ["Integration"]
            )

        assert outcome.affected_rows == 1
        assert outcome.status == "INSERT 0 1"
        assert rows == [{"user_id": 2}]

    @pytest.mark.asyncio
    async def test_missing_table_propagates(self, database_url):
        async with database(database_url) as db:
            with pytest.raises(asyncpg.UndefinedTableError):
                await db.execute("INSERT INTO missing_table (title) VALUES ($1)", ["T"])


# ============================================================================
# HTTP ROUND TRIP
# ============================================================================


class TestApplicationAgainstPostgres:
    """The application started through its lifespan."""

    @pytest.fixture
    def client(self, database_url, monkeypatch):
        monkeypatch.setattr(main_module, "settings", Settings(_env_file=None, database_url=database_url))
        with TestClient(main_module.app, raise_server_exceptions=False) as client:
            yield client

    def test_read_endpoints(self, client):
        assert client.get("/users").status_code == 200
        assert client.get("/posts/999999").json() == []
        assert client.get("/posts/9999999999").json() == []
        assert client.get("/posts/1").json()[0]["title"] == "First post"

    def test_create_post_redirects(self, client):
        response = client.post(
            "/posts",
            data={"title": "T", "content": "C"},
            headers={"Referer": "https://example.com/form"},
            follow_redirects=False,
        )

        assert response.status_code == 302
        assert response.headers["location"] == "https://example.com"
        titles = [post["title"] for post in client.get("/posts").json()]
        assert "T" in titles

    def test_ready(self, client):
        assert client.get("/ready").json()["checks"]["database"] == "healthy"
