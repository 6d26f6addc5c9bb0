"""Table definitions, provisioning, and drift reporting.

Usage:
    from notifydb.schema import TableProvisioner, TableName, definition_for
    from notifydb.schema import SchemaIntrospector, validate_schema
"""

from notifydb.schema.comparator import validate_schema
from notifydb.schema.introspector import SchemaIntrospector
from notifydb.schema.models import (
    ColumnDiff,
    ColumnSpec,
    ColumnType,
    ForeignKeySpec,
    OnDelete,
    SchemaValidationResult,
    SqlDefault,
    TableDefinition,
)
from notifydb.schema.provisioner import (
    ProvisioningReport,
    ProvisionResult,
    ProvisionStatus,
    TableProvisioner,
)
from notifydb.schema.registry import (
    PROVISIONING_ORDER,
    TABLE_DEFINITIONS,
    TableName,
    check_provisioning_order,
    definition_for,
    expected_columns,
)

__all__ = [
    "ColumnDiff",
    "ColumnSpec",
    "ColumnType",
    "ForeignKeySpec",
    "OnDelete",
    "SchemaValidationResult",
    "SqlDefault",
    "TableDefinition",
    "TableName",
    "TABLE_DEFINITIONS",
    "PROVISIONING_ORDER",
    "definition_for",
    "expected_columns",
    "check_provisioning_order",
    "TableProvisioner",
    "ProvisionResult",
    "ProvisionStatus",
    "ProvisioningReport",
    "SchemaIntrospector",
    "validate_schema",
]
