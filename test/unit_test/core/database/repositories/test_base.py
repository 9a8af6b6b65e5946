"""Unit tests for the shared repository CRUD implementation."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlmodel import select

from promptatrium.core.database.entities import User
from promptatrium.core.database.entities.prompts import Prompt
from promptatrium.core.database.repositories import QueryBuilder, SQLModelRepository


@pytest.fixture
def mock_session():
    session = MagicMock()
    session.commit = AsyncMock()
    session.refresh = AsyncMock()
    session.flush = AsyncMock()
    session.delete = AsyncMock()
    session.get = AsyncMock()
    return session


class TestCommitSemantics:
    async def test_create_commits_and_refreshes(self, mock_session):
        repo = SQLModelRepository(mock_session, User)
        user = User(username="ada")

        result = await repo.create(user)

        assert result is user
        mock_session.add.assert_called_once_with(user)
        mock_session.commit.assert_awaited_once()
        mock_session.refresh.assert_awaited_once_with(user)
        mock_session.flush.assert_not_awaited()

    async def test_create_without_commit_only_flushes(self, mock_session):
        repo = SQLModelRepository(mock_session, User)

        await repo.create(User(username="ada"), commit=False)

        mock_session.flush.assert_awaited_once()
        mock_session.commit.assert_not_awaited()

    async def test_update_touches_updated_at(self, mock_session):
        repo = SQLModelRepository(mock_session, User)
        user = User(username="ada")
        before = user.updated_at

        await repo.update(user)

        assert user.updated_at >= before
        mock_session.commit.assert_awaited_once()

    async def test_delete_missing_returns_false(self, mock_session):
        mock_session.get.return_value = None
        repo = SQLModelRepository(mock_session, User)

        assert await repo.delete("missing") is False
        mock_session.delete.assert_not_awaited()

    async def test_delete_existing(self, mock_session):
        user = User(username="ada")
        mock_session.get.return_value = user
        repo = SQLModelRepository(mock_session, User)

        assert await repo.delete(user.id, commit=False) is True
        mock_session.delete.assert_awaited_once_with(user)
        mock_session.flush.assert_awaited_once()


class TestQueryBuilder:
    def test_none_filters_are_ignored(self):
        stmt = QueryBuilder.apply_filters(select(Prompt), Prompt, {"category": None, "unknown": "x"})

        assert "WHERE" not in str(stmt)

    def test_filters_and_pagination(self):
        stmt = QueryBuilder.apply_filters(select(Prompt), Prompt, {"category": "portrait"})
        stmt = QueryBuilder.apply_pagination(stmt, 10, 20)
        sql = str(stmt)

        assert "prompts.category" in sql
        assert "LIMIT" in sql
        assert "OFFSET" in sql


class TestListAgainstDatabase:
    async def test_list_filters_rows(self, session):
        repo = SQLModelRepository(session, User)
        await repo.create(User(username="ada", role="user"))
        await repo.create(User(username="root", role="super_admin"))

        admins = await repo.list(filters={"role": "super_admin"})
        everyone = await repo.list(limit=1)

        assert [u.username for u in admins] == ["root"]
        assert len(everyone) == 1
