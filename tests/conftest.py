"""Shared test doubles.

``FakeClient`` is an in-memory stand-in for ``DatabaseClient`` that tracks
which tables exist, enforces foreign-key targets on CREATE, and can be told
to reject DDL for chosen tables.

``FakeBegin`` stands in for ``engine.begin()``: statements executed inside
it only become visible once the block exits without an exception.
"""

import re

import pytest
from sqlalchemy.exc import IntegrityError, ProgrammingError


_CREATE = re.compile(r'CREATE TABLE IF NOT EXISTS (?:"\w+"\.)?"(\w+)"')
_REFERENCES = re.compile(r'REFERENCES (?:"\w+"\.)?"(\w+)"')
_DROP = re.compile(r'DROP TABLE IF EXISTS (?:"\w+"\.)?"(\w+)"')


class FakeClient:
    """In-memory ``DatabaseClient`` for provisioning tests."""

    def __init__(self, existing=(), reject=()):
        self.tables: set[str] = set(existing)
        self.reject: set[str] = set(reject)
        self.created: list[str] = []
        self.statements: list[str] = []
        self.exists_checks: list[str] = []

    async def select(self, table, columns, filters=None, order_by=None):
        assert table == "information_schema.tables"
        name = filters["table_name"]
        self.exists_checks.append(name)
        return [{"table_name": name}] if name in self.tables else []

    async def execute(self, sql, params=None):
        self.statements.append(sql)
        match = _DROP.match(sql)
        if match:
            self.tables.discard(match.group(1))

    async def execute_all(self, statements):
        name = _CREATE.match(statements[0]).group(1)
        if name in self.reject:
            raise ProgrammingError(
                statements[0], {}, Exception(f"permission denied to create {name}")
            )
        for referenced in _REFERENCES.findall(statements[0]):
            if referenced not in self.tables:
                raise ProgrammingError(
                    statements[0], {}, Exception(f'relation "{referenced}" does not exist')
                )
        self.statements.extend(statements)
        self.tables.add(name)
        self.created.append(name)

    async def close(self):
        pass


class FakeConnection:
    """Connection inside a ``FakeBegin`` block; fails on the Nth execute."""

    def __init__(self, fail_on_call=None):
        self.fail_on_call = fail_on_call
        self.calls: list[tuple[str, dict]] = []

    async def execute(self, statement, params=None):
        self.calls.append((str(statement), params or {}))
        if self.fail_on_call == len(self.calls):
            raise IntegrityError(
                str(statement), params, Exception("duplicate key value violates unique constraint")
            )


class FakeBegin:
    """Async context manager mimicking ``AsyncEngine.begin()``."""

    def __init__(self, conn):
        self.conn = conn
        self.committed = False
        self.rolled_back = False
        self.visible_calls: list[tuple[str, dict]] = []

    async def __aenter__(self):
        return self.conn

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.committed = True
            self.visible_calls = list(self.conn.calls)
        else:
            self.rolled_back = True
        return False


@pytest.fixture
def fake_client():
    """Factory for ``FakeClient`` instances."""
    return FakeClient


@pytest.fixture
def fake_transaction():
    """Factory returning a ``FakeBegin`` around a ``FakeConnection``."""

    def _make(fail_on_call=None):
        return FakeBegin(FakeConnection(fail_on_call))

    return _make
