"""Pydantic models for table definitions and schema validation.

This module contains schema-domain models:
- Definition models: ColumnSpec, ForeignKeySpec, TableDefinition
- Validation models: ColumnDiff, SchemaValidationResult

Definitions are frozen -- they are built once at import time and rendered
to PostgreSQL DDL with ``TableDefinition.to_sql_statements()``.
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ============================================================================
# Definition Models
# ============================================================================


class ColumnType(StrEnum):
    """Column types supported by table definitions."""

    STRING = "string"
    TIMESTAMP = "timestamp"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ENUM = "enum"
    INCREMENTS = "increments"


class OnDelete(StrEnum):
    """Referential action for a foreign key."""

    CASCADE = "cascade"
    RESTRICT = "restrict"
    NONE = "none"


class SqlDefault(StrEnum):
    """Server-side default expressions."""

    NOW = "now"


def quote_ident(name: str) -> str:
    """Quote a SQL identifier, doubling any embedded quotes."""
    return '"' + name.replace('"', '""') + '"'


def qualify(name: str, schema: str | None = None) -> str:
    """Quote a table name, prefixed with its schema when one is given."""
    if schema is None:
        return quote_ident(name)
    return f"{quote_ident(schema)}.{quote_ident(name)}"


def _quote_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


class ColumnSpec(BaseModel):
    """A single column of a table definition.

    Example:
        >>> ColumnSpec(name="phone", type=ColumnType.STRING, length=100).to_sql()
        '"phone" varchar(100)'
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type: ColumnType
    length: int | None = None  # STRING only, defaults to 255
    nullable: bool = True
    default: Any = None  # literal value or SqlDefault.NOW
    enum_values: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _check_enum_values(self) -> "ColumnSpec":
        if self.type is ColumnType.ENUM and not self.enum_values:
            raise ValueError(f"Enum column '{self.name}' needs enum_values")
        if self.type is not ColumnType.ENUM and self.enum_values:
            raise ValueError(f"Column '{self.name}' is not an enum")
        return self

    def _sql_type(self) -> str:
        if self.type is ColumnType.STRING:
            return f"varchar({self.length or 255})"
        if self.type is ColumnType.TIMESTAMP:
            return "timestamptz"
        if self.type is ColumnType.INTEGER:
            return "integer"
        if self.type is ColumnType.BOOLEAN:
            return "boolean"
        if self.type is ColumnType.INCREMENTS:
            return "serial PRIMARY KEY"
        values = ", ".join(_quote_literal(v) for v in self.enum_values)
        return f"text CHECK ({quote_ident(self.name)} IN ({values}))"

    def _sql_default(self) -> str | None:
        if self.default is None:
            return None
        if isinstance(self.default, SqlDefault):
            return "CURRENT_TIMESTAMP"
        if isinstance(self.default, bool):
            return "true" if self.default else "false"
        if isinstance(self.default, int | float):
            return str(self.default)
        return _quote_literal(str(self.default))

    def to_sql(self) -> str:
        """Render the column clause of a CREATE TABLE statement."""
        parts = [quote_ident(self.name), self._sql_type()]
        if not self.nullable and self.type is not ColumnType.INCREMENTS:
            parts.append("NOT NULL")
        default = self._sql_default()
        if default is not None:
            parts.append(f"DEFAULT {default}")
        return " ".join(parts)


class ForeignKeySpec(BaseModel):
    """Foreign key from columns of one table to columns of another."""

    model_config = ConfigDict(frozen=True)

    columns: tuple[str, ...]
    references_table: str
    references_columns: tuple[str, ...]
    on_delete: OnDelete = OnDelete.NONE

    @model_validator(mode="after")
    def _check_arity(self) -> "ForeignKeySpec":
        if len(self.columns) != len(self.references_columns):
            raise ValueError(
                f"Foreign key {self.columns} -> {self.references_table}"
                f"{self.references_columns} has mismatched column counts"
            )
        return self

    def to_sql(self, table: str, schema: str | None = None) -> str:
        """Render the table constraint clause for this foreign key."""
        name = f"{table}_{'_'.join(self.columns)}_foreign"
        cols = ", ".join(quote_ident(c) for c in self.columns)
        ref_cols = ", ".join(quote_ident(c) for c in self.references_columns)
        sql = (
            f"CONSTRAINT {quote_ident(name)} FOREIGN KEY ({cols}) "
            f"REFERENCES {qualify(self.references_table, schema)} ({ref_cols})"
        )
        if self.on_delete is not OnDelete.NONE:
            sql += f" ON DELETE {self.on_delete.value.upper()}"
        return sql


class TableDefinition(BaseModel):
    """Immutable definition of one table: columns, keys, and indexes.

    Example:
        >>> t = TableDefinition(
        ...     name="things",
        ...     columns=(ColumnSpec(name="id", type=ColumnType.INCREMENTS),),
        ... )
        >>> t.to_sql_statements()
        ['CREATE TABLE IF NOT EXISTS "things" (\\n    "id" serial PRIMARY KEY\\n)']
    """

    model_config = ConfigDict(frozen=True)

    name: str
    columns: tuple[ColumnSpec, ...]
    primary_key: tuple[str, ...] = ()
    foreign_keys: tuple[ForeignKeySpec, ...] = ()
    indexes: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _check_column_references(self) -> "TableDefinition":
        known = {c.name for c in self.columns}
        referenced = list(self.primary_key) + list(self.indexes)
        for fk in self.foreign_keys:
            referenced.extend(fk.columns)
        unknown = [c for c in referenced if c not in known]
        if unknown:
            raise ValueError(f"Table '{self.name}' references unknown columns {unknown}")
        return self

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    @property
    def references(self) -> set[str]:
        """Tables this table depends on through foreign keys (self excluded)."""
        return {fk.references_table for fk in self.foreign_keys} - {self.name}

    def create_table_sql(self, schema: str | None = None) -> str:
        """Render the CREATE TABLE statement."""
        clauses = [column.to_sql() for column in self.columns]
        if self.primary_key:
            pk_cols = ", ".join(quote_ident(c) for c in self.primary_key)
            clauses.append(
                f"CONSTRAINT {quote_ident(self.name + '_pkey')} PRIMARY KEY ({pk_cols})"
            )
        clauses.extend(fk.to_sql(self.name, schema) for fk in self.foreign_keys)
        body = ",\n    ".join(clauses)
        return f"CREATE TABLE IF NOT EXISTS {qualify(self.name, schema)} (\n    {body}\n)"

    def create_index_sql(self, schema: str | None = None) -> list[str]:
        """Render one CREATE INDEX statement per secondary index."""
        return [
            f"CREATE INDEX IF NOT EXISTS {quote_ident(f'{self.name}_{column}_index')} "
            f"ON {qualify(self.name, schema)} ({quote_ident(column)})"
            for column in self.indexes
        ]

    def to_sql_statements(self, schema: str | None = None) -> list[str]:
        """All statements needed to create this table, in execution order.

        Args:
            schema: Optional schema to qualify table names with.
        """
        return [self.create_table_sql(schema), *self.create_index_sql(schema)]


# ============================================================================
# Validation Result Models
# ============================================================================


class ColumnDiff(BaseModel):
    """A registered column missing from a live table."""

    table: str
    column: str
    message: str = ""


class SchemaValidationResult(BaseModel):
    """Result of comparing the live database against the registry.

    Example:
        >>> result = SchemaValidationResult(valid=True)
        >>> result.error_count
        0
        >>> result.format_report()
        'Schema valid'
    """

    valid: bool
    missing_tables: list[str] = Field(default_factory=list)
    missing_columns: list[ColumnDiff] = Field(default_factory=list)
    extra_tables: list[str] = Field(default_factory=list)  # Warning only

    @property
    def error_count(self) -> int:
        """Count of missing tables plus missing columns."""
        return len(self.missing_tables) + len(self.missing_columns)

    def format_report(self) -> str:
        """Format validation result as human-readable report."""
        if self.valid:
            return "Schema valid"

        lines = ["Schema drift detected:"]

        if self.missing_tables:
            lines.append(
                f"\n  Missing tables ({len(self.missing_tables)}), "
                "run `notifydb provision`:"
            )
            lines.extend(f"    - {table}" for table in self.missing_tables)

        if self.missing_columns:
            lines.append(
                f"\n  Missing columns ({len(self.missing_columns)}), "
                "existing tables are never altered:"
            )
            lines.extend(f"    - {d.table}.{d.column}" for d in self.missing_columns)

        if self.extra_tables:
            lines.append(f"\n  Unregistered tables (ignored): {', '.join(self.extra_tables)}")

        return "\n".join(lines)
