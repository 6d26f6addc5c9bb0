"""PostgreSQL schema introspection via information_schema.

Reads live table and column names so they can be compared with the
registry.  Uses psycopg (v3) async connections, independent of the
application's SQLAlchemy pool.

Usage:
    async with SchemaIntrospector(database_url) as introspector:
        columns = await introspector.get_column_names()
"""

from psycopg import AsyncConnection


class SchemaIntrospector:
    """Introspects table and column names of one PostgreSQL schema.

    Args:
        database_url: PostgreSQL connection URL.  A SQLAlchemy
            ``postgresql+asyncpg://`` URL is accepted and rewritten.
        excluded_tables: Table names to skip.  Defaults to common
            extension/system tables.
    """

    DEFAULT_EXCLUDED_TABLES = frozenset({
        "schema_migrations",
        "pg_stat_statements",
        "spatial_ref_sys",
    })

    def __init__(
        self,
        database_url: str,
        excluded_tables: set[str] | None = None,
    ) -> None:
        self._database_url = database_url.replace("postgresql+asyncpg://", "postgresql://", 1)
        self._excluded_tables = (
            frozenset(excluded_tables)
            if excluded_tables is not None
            else self.DEFAULT_EXCLUDED_TABLES
        )
        self._conn: AsyncConnection | None = None

    async def __aenter__(self) -> "SchemaIntrospector":
        """Open the connection."""
        self._conn = await AsyncConnection.connect(self._database_url, connect_timeout=10)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Close the connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_conn(self) -> AsyncConnection:
        if not self._conn:
            raise RuntimeError("Introspector not connected. Use async with statement.")
        return self._conn

    async def get_tables(self, schema_name: str = "public") -> list[str]:
        """Get all base table names in schema, minus excluded tables."""
        query = """
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = %s
              AND table_type = 'BASE TABLE'
            ORDER BY table_name
        """
        async with self._require_conn().cursor() as cur:
            await cur.execute(query, (schema_name,))
            return [row[0] for row in await cur.fetchall() if row[0] not in self._excluded_tables]

    async def get_column_names(self, schema_name: str = "public") -> dict[str, set[str]]:
        """Get column names for all tables in schema.

        Returns:
            Dict mapping table name to set of column names
        """
        query = """
            SELECT c.table_name, c.column_name
            FROM information_schema.columns c
            JOIN information_schema.tables t
              ON t.table_schema = c.table_schema
             AND t.table_name = c.table_name
            WHERE c.table_schema = %s
              AND t.table_type = 'BASE TABLE'
        """
        result: dict[str, set[str]] = {}
        async with self._require_conn().cursor() as cur:
            await cur.execute(query, (schema_name,))
            for table_name, column_name in await cur.fetchall():
                if table_name in self._excluded_tables:
                    continue
                result.setdefault(table_name, set()).add(column_name)
        return result
