"""Unit tests for database helpers."""

import re
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine

from promptatrium.core.database import as_naive_utc, create_engine, new_prompt_id, new_uuid, utc_now
from promptatrium.core.database.utils import normalize_database_url


class TestNormalizeDatabaseUrl:
    @pytest.mark.parametrize(
        "url",
        [
            "postgres://u:p@db:5432/app",
            "postgresql://u:p@db:5432/app",
            "postgresql+psycopg2://u:p@db:5432/app",
            "postgresql+asyncpg://u:p@db:5432/app",
        ],
    )
    def test_postgres_urls_use_asyncpg(self, url):
        assert normalize_database_url(url) == "postgresql+asyncpg://u:p@db:5432/app"

    def test_other_urls_are_untouched(self):
        assert normalize_database_url("sqlite+aiosqlite:///:memory:") == "sqlite+aiosqlite:///:memory:"


class TestCreateEngine:
    async def test_sqlite_engine(self):
        engine = create_engine("sqlite+aiosqlite:///:memory:")
        try:
            assert isinstance(engine, AsyncEngine)
            assert engine.url.drivername == "sqlite+aiosqlite"
        finally:
            await engine.dispose()


class TestIdentifiersAndTime:
    def test_utc_now_is_naive(self):
        now = utc_now()

        assert now.tzinfo is None
        assert abs(now - datetime.now(timezone.utc).replace(tzinfo=None)) < timedelta(seconds=5)

    def test_as_naive_utc_converts_aware_values(self):
        aware = datetime(2024, 3, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))

        assert as_naive_utc(aware) == datetime(2024, 3, 1, 10, 0)
        assert as_naive_utc(None) is None
        assert as_naive_utc(datetime(2024, 3, 1)) == datetime(2024, 3, 1)

    def test_prompt_ids_are_short_hex(self):
        ids = {new_prompt_id() for _ in range(50)}

        assert len(ids) == 50
        assert all(re.fullmatch(r"[0-9a-f]{10}", value) for value in ids)

    def test_new_uuid(self):
        assert len(new_uuid()) == 36
