"""Database client protocol definition.

Defines the ``DatabaseClient`` Protocol the schema provisioner is written
against.  All methods are ``async def``.

Usage:
    from notifydb.adapters.base import DatabaseClient

    async def do_work(client: DatabaseClient) -> None:
        rows = await client.select("requests", "case_id, phone")
        await client.execute_all([
            'CREATE TABLE IF NOT EXISTS "t" ("id" serial PRIMARY KEY)',
            'CREATE INDEX IF NOT EXISTS "t_id_index" ON "t" ("id")',
        ])
        await client.close()
"""

from typing import Any, Protocol


class DatabaseClient(Protocol):
    """Database client interface used by the provisioner and the CLI.

    All methods are async -- callers must ``await`` every operation.
    """

    async def select(
        self,
        table: str,
        columns: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
    ) -> list[dict]:
        """Select rows from table.

        Args:
            table: Table name, optionally schema-qualified
                (e.g., ``"information_schema.tables"``).
            columns: Comma-separated column names.
            filters: Optional dict of field=value filters (all must match via AND).
            order_by: Optional column name to sort by.

        Returns:
            List of dicts, one per row.  Empty list if no matches.
        """
        ...

    async def execute(self, sql: str, params: dict | None = None) -> None:
        """Execute a single raw SQL statement in its own transaction."""
        ...

    async def execute_all(self, statements: list[str]) -> None:
        """Execute several statements in one transaction.

        Either every statement commits or none does.
        """
        ...

    async def close(self) -> None:
        """Dispose of the connection pool."""
        ...
