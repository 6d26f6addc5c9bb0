"""Database adapters package.

Provides the ``DatabaseClient`` Protocol and the async PostgreSQL adapter.

Usage:
    from notifydb.adapters import DatabaseClient, AsyncPostgresAdapter
"""

from notifydb.adapters.base import DatabaseClient
from notifydb.adapters.postgres import AsyncPostgresAdapter, create_async_engine_pooled

__all__ = [
    "DatabaseClient",
    "AsyncPostgresAdapter",
    "create_async_engine_pooled",
]
