"""
Unit tests for the user and post repositories.

Tests cover:
- Fixed column projections of the list queries
- Binding of the post id and the insert values
- Empty results for missing posts, including ids no column can hold
- Error propagation from the data accessor
"""

import pytest
from unittest.mock import AsyncMock

from blog.src.models.blog import WriteOutcome
from blog.src.repositories.user_repo import UserRepository, LIST_USERS_SQL
from blog.src.repositories.post_repo import (
    PostRepository,
    LIST_POSTS_SQL,
    GET_POST_SQL,
    CREATE_POST_SQL,
)


def _columns(sql: str) -> list:
    select = " ".join(sql.split()).split(" FROM ")[0]
    return [column.strip() for column in select.replace("SELECT", "", 1).split(",")]


class TestUserRepository:
    """Tests for UserRepository."""

    def test_list_users_projection(self):
        assert _columns(LIST_USERS_SQL) == [
            "id", "created_at", "updated_at", "first_name", "last_name", "email"
        ]

    @pytest.mark.asyncio
    async def test_list_users_returns_rows(self):
        db = AsyncMock()
        db.get_results.return_value = [{"id": 1, "first_name": "Ada"}]

        rows = await UserRepository(db).list_users()

        assert rows == [{"id": 1, "first_name": "Ada"}]
        db.get_results.assert_awaited_once_with(LIST_USERS_SQL)

    @pytest.mark.asyncio
    async def test_list_users_propagates_errors(self):
        db = AsyncMock()
        db.get_results.side_effect = RuntimeError("connection lost")

        with pytest.raises(RuntimeError, match="connection lost"):
            await UserRepository(db).list_users()


class TestPostRepository:
    """Tests for PostRepository."""

    def test_list_posts_projection(self):
        assert _columns(LIST_POSTS_SQL) == ["id", "created_at", "updated_at", "title"]

    def test_get_post_selects_all_columns(self):
        assert _columns(GET_POST_SQL) == ["*"]
        assert "$1" in GET_POST_SQL

    @pytest.mark.asyncio
    async def test_get_post_binds_id(self):
        db = AsyncMock()
        db.get_results.return_value = [{"id": 1, "title": "Hello", "content": "World"}]

        rows = await PostRepository(db).get_post(1)

        assert len(rows) == 1
        db.get_results.assert_awaited_once_with(GET_POST_SQL, [1])

    @pytest.mark.asyncio
    async def test_get_missing_post_returns_empty_list(self):
        db = AsyncMock()
        db.get_results.return_value = []

        assert await PostRepository(db).get_post(999999) == []

    def test_get_post_compares_as_bigint(self):
        assert "$1::bigint" in GET_POST_SQL

    @pytest.mark.asyncio
    @pytest.mark.parametrize("post_id", [2**63, -(2**63), 10**30])
    async def test_get_post_beyond_bigint_matches_nothing(self, post_id):
        db = AsyncMock()

        assert await PostRepository(db).get_post(post_id) == []
        db.get_results.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_post_binds_values_in_order(self):
        db = AsyncMock()
        db.get_results.return_value = WriteOutcome(command="INSERT", affected_rows=1, status="INSERT 0 1")

        outcome = await PostRepository(db).create_post("T", "C", 7)

        assert outcome.affected_rows == 1
        db.get_results.assert_awaited_once_with(CREATE_POST_SQL, ["T", "C", 7])

    @pytest.mark.asyncio
    async def test_create_post_returns_zero_row_outcome(self):
        db = AsyncMock()
        db.get_results.return_value = WriteOutcome(command="INSERT", affected_rows=0, status="INSERT 0 0")

        outcome = await PostRepository(db).create_post("T", "C", 1)

        assert outcome.affected_rows == 0

    @pytest.mark.asyncio
    async def test_create_post_propagates_errors(self):
        db = AsyncMock()
        db.get_results.side_effect = RuntimeError("relation does not exist")

        with pytest.raises(RuntimeError):
            await PostRepository(db).create_post("T", "C", 1)
