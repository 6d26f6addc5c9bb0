"""Registry of the notification application's table definitions.

The set of tables is closed: ``TableName`` enumerates every table the
provisioner knows how to create, and ``definition_for`` is the only lookup.

Usage:
    from notifydb.schema.registry import PROVISIONING_ORDER, TableName, definition_for

    definition = definition_for(TableName.NOTIFICATIONS)
    for statement in definition.to_sql_statements():
        ...
"""

from collections.abc import Iterable, Mapping
from enum import StrEnum
from types import MappingProxyType

from notifydb.exceptions import UnregisteredTableError
from notifydb.schema.models import (
    ColumnSpec,
    ColumnType,
    ForeignKeySpec,
    OnDelete,
    SqlDefault,
    TableDefinition,
)


class TableName(StrEnum):
    """Names of all registered tables."""

    REQUESTS = "requests"
    HEARINGS = "hearings"
    NOTIFICATIONS = "notifications"
    LOG_RUNNERS = "log_runners"
    LOG_HITS = "log_hits"


NOTIFICATION_TYPES = ("reminder", "matched", "expired")
RUNNER_TYPES = ("send_reminder", "send_expired", "send_matched", "load")


def _string(name: str, length: int | None = None, **kwargs) -> ColumnSpec:
    return ColumnSpec(name=name, type=ColumnType.STRING, length=length, **kwargs)


def _timestamp(name: str, **kwargs) -> ColumnSpec:
    return ColumnSpec(name=name, type=ColumnType.TIMESTAMP, **kwargs)


HEARINGS = TableDefinition(
    name=TableName.HEARINGS,
    columns=(
        _string("defendant", 100),
        _timestamp("date"),
        _string("room", 100),
        _string("case_id", 100),
        _string("type", 100),
    ),
    primary_key=("case_id", "date"),
    indexes=("case_id",),
)

REQUESTS = TableDefinition(
    name=TableName.REQUESTS,
    columns=(
        _timestamp("created_at", nullable=False, default=SqlDefault.NOW),
        _timestamp("updated_at", nullable=False, default=SqlDefault.NOW),
        _string("case_id", 100),
        _string("phone", 100),
        ColumnSpec(name="known_case", type=ColumnType.BOOLEAN, default=False),
        ColumnSpec(name="active", type=ColumnType.BOOLEAN, default=True),
    ),
    primary_key=("case_id", "phone"),
)

NOTIFICATIONS = TableDefinition(
    name=TableName.NOTIFICATIONS,
    columns=(
        _timestamp("created_at", default=SqlDefault.NOW),
        _string("case_id"),
        _string("phone"),
        _timestamp("event_date"),
        ColumnSpec(name="type", type=ColumnType.ENUM, enum_values=NOTIFICATION_TYPES),
        _string("error"),
    ),
    foreign_keys=(
        ForeignKeySpec(
            columns=("case_id", "phone"),
            references_table=TableName.REQUESTS,
            references_columns=("case_id", "phone"),
            on_delete=OnDelete.CASCADE,
        ),
    ),
)

LOG_RUNNERS = TableDefinition(
    name=TableName.LOG_RUNNERS,
    columns=(
        ColumnSpec(name="id", type=ColumnType.INCREMENTS),
        ColumnSpec(name="runner", type=ColumnType.ENUM, enum_values=RUNNER_TYPES),
        ColumnSpec(name="count", type=ColumnType.INTEGER),
        ColumnSpec(name="error_count", type=ColumnType.INTEGER),
        _timestamp("date", default=SqlDefault.NOW),
    ),
)

LOG_HITS = TableDefinition(
    name=TableName.LOG_HITS,
    columns=(
        _timestamp("time", default=SqlDefault.NOW),
        _string("path"),
        _string("method"),
        _string("status_code"),
        _string("phone"),
        _string("body"),
        _string("action"),
    ),
)

TABLE_DEFINITIONS: Mapping[TableName, TableDefinition] = MappingProxyType({
    TableName.REQUESTS: REQUESTS,
    TableName.HEARINGS: HEARINGS,
    TableName.NOTIFICATIONS: NOTIFICATIONS,
    TableName.LOG_RUNNERS: LOG_RUNNERS,
    TableName.LOG_HITS: LOG_HITS,
})

# requests must precede notifications (FK). The rest is incidental.
PROVISIONING_ORDER: tuple[TableName, ...] = (
    TableName.REQUESTS,
    TableName.HEARINGS,
    TableName.NOTIFICATIONS,
    TableName.LOG_RUNNERS,
    TableName.LOG_HITS,
)


def definition_for(name: TableName | str) -> TableDefinition:
    """Look up the definition of a registered table.

    Args:
        name: A ``TableName`` or its string value.

    Returns:
        The table's ``TableDefinition``.

    Raises:
        UnregisteredTableError: If *name* is not a registered table.
    """
    try:
        return TABLE_DEFINITIONS[TableName(name)]
    except ValueError:
        raise UnregisteredTableError(str(name)) from None


def expected_columns() -> dict[str, set[str]]:
    """Column names per registered table, for schema validation."""
    return {
        str(name): set(definition.column_names)
        for name, definition in TABLE_DEFINITIONS.items()
    }


def check_provisioning_order(order: Iterable[TableName | str]) -> list[TableName]:
    """Validate that every table comes after the tables it references.

    Args:
        order: Candidate provisioning order.

    Returns:
        The order as a list of ``TableName``.

    Raises:
        UnregisteredTableError: If the order names an unregistered table.
        ValueError: If a table is listed twice, or appears before a table
            it references via a foreign key.
    """
    tables: list[TableName] = []
    for name in order:
        definition_for(name)
        tables.append(TableName(name))

    seen: set[str] = set()
    for table in tables:
        if table in seen:
            raise ValueError(f"Table '{table}' appears more than once in provisioning order")
        missing = definition_for(table).references - seen
        if missing:
            raise ValueError(
                f"Table '{table}' references {sorted(str(t) for t in missing)}, "
                "which must be provisioned first"
            )
        seen.add(table)

    return tables


check_provisioning_order(PROVISIONING_ORDER)
