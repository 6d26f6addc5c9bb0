"""Idempotent table provisioning.

Creates registered tables that do not exist yet, in foreign-key dependency
order.  Existing tables are never altered.

Usage:
    from notifydb.schema.provisioner import TableProvisioner

    provisioner = TableProvisioner(adapter)
    report = await provisioner.ensure_all()
    if not report.ok:
        print(report.failed)

Failure policy:
    ``ensure_all`` is best-effort per table: any error for one table is
    logged and recorded, and the remaining tables are still attempted.
    ``create_table`` and ``drop_table`` called directly raise
    ``DdlExecutionError`` when the database rejects the statement.
    ``create_table`` never raises for an unregistered name; it returns a
    falsy ``NOT_REGISTERED`` result instead.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum

from sqlalchemy.exc import SQLAlchemyError

from notifydb.adapters.base import DatabaseClient
from notifydb.exceptions import DdlExecutionError, UnregisteredTableError
from notifydb.schema.models import qualify
from notifydb.schema.registry import (
    PROVISIONING_ORDER,
    TableName,
    check_provisioning_order,
    definition_for,
)

logger = logging.getLogger(__name__)


class ProvisionStatus(StrEnum):
    """Outcome of a single create or drop."""

    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    DROPPED = "dropped"
    NOT_REGISTERED = "not_registered"
    FAILED = "failed"


_SUCCESS = {ProvisionStatus.CREATED, ProvisionStatus.ALREADY_EXISTS, ProvisionStatus.DROPPED}


@dataclass(frozen=True)
class ProvisionResult:
    """Outcome for one table.  Truthy only when the operation succeeded."""

    table: str
    status: ProvisionStatus
    error: str | None = None

    def __bool__(self) -> bool:
        return self.status in _SUCCESS


@dataclass
class ProvisioningReport:
    """Per-table outcomes of an ``ensure_all`` pass, in provisioning order."""

    results: list[ProvisionResult] = field(default_factory=list)

    @property
    def created(self) -> list[str]:
        return [r.table for r in self.results if r.status is ProvisionStatus.CREATED]

    @property
    def failed(self) -> list[str]:
        return [r.table for r in self.results if not r]

    @property
    def ok(self) -> bool:
        """True if every table exists after the pass."""
        return all(self.results)


class TableProvisioner:
    """Creates and drops the registered tables.

    Args:
        client: Database client (``AsyncPostgresAdapter`` in production).
        schema_name: PostgreSQL schema the tables live in.
        order: Provisioning order.  Validated against the registry's
            foreign keys at construction.

    Raises:
        ValueError: If *order* lists a table before one it references.
    """

    def __init__(
        self,
        client: DatabaseClient,
        schema_name: str = "public",
        order: Iterable[TableName | str] = PROVISIONING_ORDER,
    ) -> None:
        self._client = client
        self._schema_name = schema_name
        self._order = check_provisioning_order(order)

    @property
    def order(self) -> list[TableName]:
        return list(self._order)

    async def table_exists(self, name: str) -> bool:
        """Check ``information_schema`` for a table in the configured schema."""
        rows = await self._client.select(
            "information_schema.tables",
            "table_name",
            filters={"table_schema": self._schema_name, "table_name": str(name)},
        )
        return bool(rows)

    async def create_table(self, name: TableName | str) -> ProvisionResult:
        """Create a registered table if it does not exist.

        Args:
            name: Registered table name.

        Returns:
            ``ProvisionResult`` with status ``CREATED``, ``ALREADY_EXISTS``
            or ``NOT_REGISTERED``.

        Raises:
            DdlExecutionError: If the existence check or DDL fails.
        """
        try:
            definition = definition_for(name)
        except UnregisteredTableError as e:
            logger.error(f"No table creation instructions found: {e}")
            return ProvisionResult(str(name), ProvisionStatus.NOT_REGISTERED, str(e))

        table = str(definition.name)
        try:
            if await self.table_exists(table):
                logger.debug(f'Table "{table}" already exists. Will not create.')
                return ProvisionResult(table, ProvisionStatus.ALREADY_EXISTS)

            await self._client.execute_all(definition.to_sql_statements(self._schema_name))
        except SQLAlchemyError as e:
            raise DdlExecutionError(table, "create", e) from e

        logger.debug(f'Table created: "{table}"')
        return ProvisionResult(table, ProvisionStatus.CREATED)

    async def drop_table(self, name: str, cascade: bool = False) -> ProvisionResult:
        """Drop a table if it exists.

        Any table name is accepted; the registry is not consulted.

        Args:
            name: Table to drop.
            cascade: Also drop foreign keys in other tables that reference
                this one.  Without it, dropping a referenced table fails.

        Raises:
            DdlExecutionError: If the database rejects the DROP.
        """
        table = str(name)
        sql = f"DROP TABLE IF EXISTS {qualify(table, self._schema_name)}"
        if cascade:
            sql += " CASCADE"
        try:
            await self._client.execute(sql)
        except SQLAlchemyError as e:
            raise DdlExecutionError(table, "drop", e) from e

        logger.debug(f'Dropped existing table "{table}"')
        return ProvisionResult(table, ProvisionStatus.DROPPED)

    async def ensure_all(self) -> ProvisioningReport:
        """Create every registered table that is missing.

        Tables are created one at a time in provisioning order, so a
        referenced table is committed before any table that references it.
        A failure for one table is logged and does not stop the pass.

        Returns:
            ``ProvisioningReport`` with one result per table.
        """
        report = ProvisioningReport()

        for table in self._order:
            try:
                result = await self.create_table(table)
            except Exception as e:
                logger.exception(f'Failed to provision table "{table}"')
                result = ProvisionResult(str(table), ProvisionStatus.FAILED, str(e))
            report.results.append(result)

        if report.created:
            logger.debug(f"Created tables: {', '.join(report.created)}")
        return report
