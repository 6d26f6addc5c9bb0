"""notifydb: schema provisioning and bulk writes for the notification app.

Creates the application's PostgreSQL tables in foreign-key order when they
are missing, and provides transactional batch inserts and dedicated
connection checkout over one SQLAlchemy async pool.

Usage:
    from notifydb import DatabaseManager

    db = DatabaseManager.from_config()
    await db.ensure_tables_exist()
    await db.batch_insert("hearings", rows, 1000)
    await db.close_connection()
"""

__version__ = "0.1.0"

# Adapters
from notifydb.adapters.base import DatabaseClient
from notifydb.adapters.postgres import AsyncPostgresAdapter

# Config
from notifydb.config.loader import load_db_config
from notifydb.config.models import DatabaseConfig, DatabaseProfile

# Errors
from notifydb.exceptions import (
    DdlExecutionError,
    NotifyDbError,
    TransactionError,
    UnregisteredTableError,
)

# Factory
from notifydb.factory import ProfileNotFoundError, get_adapter, resolve_settings

# Components
from notifydb.connections import ConnectionManager
from notifydb.manager import DatabaseManager
from notifydb.schema.provisioner import ProvisionStatus, TableProvisioner
from notifydb.schema.registry import PROVISIONING_ORDER, TableName, definition_for
from notifydb.writer import BatchWriter

__all__ = [
    # Adapters
    "DatabaseClient",
    "AsyncPostgresAdapter",
    # Config
    "load_db_config",
    "DatabaseConfig",
    "DatabaseProfile",
    # Errors
    "NotifyDbError",
    "UnregisteredTableError",
    "DdlExecutionError",
    "TransactionError",
    "ProfileNotFoundError",
    # Factory
    "get_adapter",
    "resolve_settings",
    # Components
    "DatabaseManager",
    "TableProvisioner",
    "ProvisionStatus",
    "BatchWriter",
    "ConnectionManager",
    "TableName",
    "PROVISIONING_ORDER",
    "definition_for",
]
