"""Tests for AsyncPostgresAdapter and engine construction.

The engine is mocked; no database is needed.
"""

import inspect
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import UUID

import pytest

from notifydb.adapters.base import DatabaseClient
from notifydb.adapters.postgres import (
    AsyncPostgresAdapter,
    create_async_engine_pooled,
    normalize_url,
)


def _mock_engine() -> tuple[MagicMock, AsyncMock]:
    """Engine whose begin()/connect() yield the same mock connection."""
    conn = AsyncMock()
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=conn)
    context.__aexit__ = AsyncMock(return_value=False)

    engine = MagicMock()
    engine.begin.return_value = context
    engine.connect.return_value = context
    engine.dispose = AsyncMock()
    return engine, conn


def _adapter(engine: MagicMock, **kwargs) -> AsyncPostgresAdapter:
    with patch(
        "notifydb.adapters.postgres.create_async_engine_pooled", return_value=engine
    ):
        return AsyncPostgresAdapter("postgresql://localhost/courtbot", **kwargs)


# ============================================================================
# URL normalization and engine defaults
# ============================================================================


class TestNormalizeUrl:
    """Every PostgreSQL URL form ends up on the asyncpg driver."""

    @pytest.mark.parametrize(
        "url",
        [
            "postgres://u:p@host:5432/db",
            "postgresql://u:p@host:5432/db",
            "postgresql+asyncpg://u:p@host:5432/db",
        ],
    )
    def test_asyncpg_scheme(self, url) -> None:
        assert normalize_url(url) == "postgresql+asyncpg://u:p@host:5432/db"


class TestCreateAsyncEnginePooled:
    """Pool defaults and caller overrides."""

    def test_defaults(self) -> None:
        with patch("notifydb.adapters.postgres.create_async_engine") as mock_create:
            create_async_engine_pooled("postgresql+asyncpg://localhost/db")

        _, kwargs = mock_create.call_args
        assert kwargs["pool_size"] == 5
        assert kwargs["max_overflow"] == 10
        assert kwargs["pool_pre_ping"] is True
        assert kwargs["pool_recycle"] == 300
        assert kwargs["connect_args"] == {"timeout": 5}

    def test_overrides(self) -> None:
        with patch("notifydb.adapters.postgres.create_async_engine") as mock_create:
            create_async_engine_pooled(
                "postgresql+asyncpg://localhost/db",
                pool_size=2,
                connect_args={"timeout": 30, "server_settings": {"application_name": "x"}},
            )

        _, kwargs = mock_create.call_args
        assert kwargs["pool_size"] == 2
        assert kwargs["max_overflow"] == 10
        assert kwargs["connect_args"]["timeout"] == 30
        assert "server_settings" in kwargs["connect_args"]

    def test_adapter_normalizes_url(self) -> None:
        with patch("notifydb.adapters.postgres.create_async_engine_pooled") as mock_create:
            AsyncPostgresAdapter("postgres://localhost/courtbot", pool_size=3)

        mock_create.assert_called_once_with(
            "postgresql+asyncpg://localhost/courtbot", pool_size=3
        )


class TestTimezoneCodec:
    """The timestamptz codec is installed only when a zone is configured."""

    def test_installed_with_timezone(self) -> None:
        engine, _ = _mock_engine()
        with patch("notifydb.adapters.postgres.install_timestamptz_codec") as mock_install:
            _adapter(engine, timezone="America/Anchorage")

        mock_install.assert_called_once()
        assert mock_install.call_args[0][0] is engine
        assert mock_install.call_args[0][1].key == "America/Anchorage"

    def test_not_installed_without_timezone(self) -> None:
        engine, _ = _mock_engine()
        with patch("notifydb.adapters.postgres.install_timestamptz_codec") as mock_install:
            _adapter(engine)

        mock_install.assert_not_called()


# ============================================================================
# Query methods
# ============================================================================


class TestAdapterQueries:
    """Queries run through the pooled engine."""

    def test_implements_protocol_methods(self) -> None:
        engine, _ = _mock_engine()
        adapter = _adapter(engine)
        for name in ("select", "execute", "execute_all", "close"):
            assert hasattr(DatabaseClient, name)
            assert inspect.iscoroutinefunction(getattr(adapter, name))

    def test_no_single_row_insert(self) -> None:
        """Rows are written only through BatchWriter."""
        engine, _ = _mock_engine()
        assert not hasattr(DatabaseClient, "insert")
        assert not hasattr(_adapter(engine), "insert")

    async def test_select_with_filters(self) -> None:
        engine, conn = _mock_engine()
        result = MagicMock()
        result.keys.return_value = ["table_name"]
        result.fetchall.return_value = [("requests",)]
        conn.execute.return_value = result

        rows = await _adapter(engine).select(
            "information_schema.tables",
            "table_name",
            filters={"table_schema": "public", "table_name": "requests"},
        )

        assert rows == [{"table_name": "requests"}]
        statement, params = conn.execute.call_args[0]
        assert str(statement) == (
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema = :p_0 AND table_name = :p_1"
        )
        assert params == {"p_0": "public", "p_1": "requests"}

    async def test_execute_commits_in_transaction(self) -> None:
        engine, conn = _mock_engine()

        await _adapter(engine).execute('DROP TABLE IF EXISTS "log_hits"')

        engine.begin.assert_called_once()
        assert str(conn.execute.call_args[0][0]) == 'DROP TABLE IF EXISTS "log_hits"'

    async def test_execute_all_uses_one_transaction(self) -> None:
        engine, conn = _mock_engine()

        await _adapter(engine).execute_all(["CREATE TABLE a (x int)", "CREATE INDEX i ON a (x)"])

        engine.begin.assert_called_once()
        assert [str(c[0][0]) for c in conn.execute.call_args_list] == [
            "CREATE TABLE a (x int)",
            "CREATE INDEX i ON a (x)",
        ]

    async def test_test_connection(self) -> None:
        engine, conn = _mock_engine()
        result = MagicMock()
        result.scalar.return_value = 1
        conn.execute.return_value = result

        assert await _adapter(engine).test_connection() is True

    async def test_close_disposes_pool(self) -> None:
        engine, _ = _mock_engine()

        await _adapter(engine).close()

        engine.dispose.assert_awaited_once()

    def test_begin_and_connect_delegate(self) -> None:
        engine, _ = _mock_engine()
        adapter = _adapter(engine)

        assert adapter.begin() is engine.begin.return_value
        assert adapter.connect() is engine.connect.return_value
        assert adapter.engine is engine


class TestSerialization:
    def test_uuid_and_datetime(self) -> None:
        engine, _ = _mock_engine()
        adapter = _adapter(engine)
        row = adapter._serialize_row({
            "id": UUID("12345678-1234-5678-1234-567812345678"),
            "at": datetime(2017, 3, 1, 19, 0, tzinfo=timezone.utc),
            "n": 3,
        })
        assert row == {
            "id": "12345678-1234-5678-1234-567812345678",
            "at": "2017-03-01T19:00:00+00:00",
            "n": 3,
        }
