"""Dedicated connections borrowed from the shared pool.

Most queries go through the adapter's pooled methods.  Operations that
need one connection for their whole duration (advisory locks, ``COPY``
loads through the driver) check one out here and release it when done.

Usage:
    from notifydb.connections import ConnectionManager

    connections = ConnectionManager(adapter)
    conn = await connections.acquire_connection()
    try:
        raw = await connections.driver_connection(conn)
        await raw.copy_records_to_table("hearings", records=records)
    finally:
        await connections.close_connection(conn)

    # Shutdown / test teardown: dispose the whole pool
    await connections.close_connection()
"""

import logging

from sqlalchemy.ext.asyncio import AsyncConnection

from notifydb.adapters.postgres import AsyncPostgresAdapter

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Checks connections out of, and back into, the adapter's pool."""

    def __init__(self, adapter: AsyncPostgresAdapter) -> None:
        self._adapter = adapter

    async def acquire_connection(self) -> AsyncConnection:
        """Check out a connection for exclusive use.

        The caller must release it with ``close_connection(conn)``.
        Pool errors (checkout timeout, connect failure) propagate unchanged.
        """
        conn = await self._adapter.connect()
        logger.debug("Acquired dedicated connection")
        return conn

    async def close_connection(self, conn: AsyncConnection | None = None) -> None:
        """Release one connection, or dispose of the whole pool.

        Args:
            conn: Connection from ``acquire_connection``.  ``None`` disposes
                every pooled connection; only call that during shutdown or
                test teardown.  The next checkout opens a fresh pool.
        """
        if conn is None:
            await self._adapter.close()
            return

        await conn.close()
        logger.debug("Released dedicated connection")

    async def driver_connection(self, conn: AsyncConnection):
        """Return the asyncpg connection behind a checked-out connection."""
        fairy = await conn.get_raw_connection()
        return fairy.driver_connection
