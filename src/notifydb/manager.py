"""Database manager: the entry point the application talks to.

Composes the provisioner, batch writer and connection manager around one
adapter.  Construct it once at startup (``from_config``) and tear it down
with ``close_connection()`` at shutdown.

Usage:
    from notifydb import DatabaseManager

    db = DatabaseManager.from_config()
    await db.ensure_tables_exist()
    await db.batch_insert("hearings", rows, 1000)
    await db.close_connection()

    # or
    async with DatabaseManager.from_config(profile_name="test") as db:
        ...
"""

from collections.abc import Iterable
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from notifydb.adapters.postgres import AsyncPostgresAdapter
from notifydb.connections import ConnectionManager
from notifydb.factory import create_adapter, resolve_settings
from notifydb.schema.provisioner import ProvisioningReport, ProvisionResult, TableProvisioner
from notifydb.schema.registry import TableName
from notifydb.writer import BatchWriter, Row


class DatabaseManager:
    """Schema provisioning, bulk writes and connection lifecycle for one pool.

    Args:
        adapter: Adapter owning the connection pool.
        schema_name: PostgreSQL schema the tables live in.
    """

    def __init__(self, adapter: AsyncPostgresAdapter, schema_name: str = "public") -> None:
        self._adapter = adapter
        self.provisioner = TableProvisioner(adapter, schema_name=schema_name)
        self.writer = BatchWriter(adapter, schema_name=schema_name)
        self.connections = ConnectionManager(adapter)

    @classmethod
    def from_config(
        cls,
        profile_name: str | None = None,
        env_prefix: str = "",
        config_path: Path | None = None,
    ) -> "DatabaseManager":
        """Build a manager for the active runtime mode (see ``notifydb.factory``)."""
        settings = resolve_settings(profile_name, env_prefix, config_path)
        return cls(create_adapter(settings), schema_name=settings.schema_name)

    async def __aenter__(self) -> "DatabaseManager":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close_connection()

    @property
    def adapter(self) -> AsyncPostgresAdapter:
        return self._adapter

    @property
    def engine(self) -> AsyncEngine:
        """Engine for ad-hoc queries not covered here."""
        return self._adapter.engine

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    async def ensure_tables_exist(self) -> ProvisioningReport:
        """Create any missing tables, in dependency order.  Never raises."""
        return await self.provisioner.ensure_all()

    async def create_table(self, name: TableName | str) -> ProvisionResult:
        return await self.provisioner.create_table(name)

    async def drop_table(self, name: str, cascade: bool = False) -> ProvisionResult:
        return await self.provisioner.drop_table(name, cascade=cascade)

    async def table_exists(self, name: str) -> bool:
        return await self.provisioner.table_exists(name)

    # ------------------------------------------------------------------
    # Writes and connections
    # ------------------------------------------------------------------

    async def batch_insert(self, table: str, rows: Iterable[Row], size: int) -> int:
        return await self.writer.batch_insert(table, rows, size)

    async def acquire_single_connection(self) -> AsyncConnection:
        return await self.connections.acquire_connection()

    async def close_connection(self, conn: AsyncConnection | None = None) -> None:
        """Release *conn*, or dispose of the whole pool when ``None``."""
        await self.connections.close_connection(conn)
