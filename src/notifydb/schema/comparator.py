"""Schema drift report.

Compares live column names against the registry.  Pure logic, no I/O.
The report is informational: the provisioner creates missing tables but
never alters existing ones.

Usage:
    async with SchemaIntrospector(database_url) as introspector:
        actual = await introspector.get_column_names()

    result = validate_schema(actual)
    print(result.format_report())
"""

from notifydb.schema.models import ColumnDiff, SchemaValidationResult
from notifydb.schema.registry import expected_columns as registry_columns


def validate_schema(
    actual_columns: dict[str, set[str]],
    expected_columns: dict[str, set[str]] | None = None,
) -> SchemaValidationResult:
    """Validate live tables against expected columns.

    Args:
        actual_columns: Table name to live column names, as returned by
            ``SchemaIntrospector.get_column_names()``.
        expected_columns: Table name to expected column names.  Defaults to
            the registered table definitions.

    Returns:
        ``SchemaValidationResult``; ``valid`` is False when a table or a
        column is missing.  Extra tables are reported but never invalid.

    Examples:
        >>> validate_schema({"log_hits": {"time"}}, {"log_hits": {"time"}}).valid
        True
        >>> validate_schema({}, {"log_hits": {"time"}}).missing_tables
        ['log_hits']
    """
    if expected_columns is None:
        expected_columns = registry_columns()

    missing_tables = sorted(set(expected_columns) - set(actual_columns))
    extra_tables = sorted(set(actual_columns) - set(expected_columns))

    missing_columns = [
        ColumnDiff(
            table=table,
            column=column,
            message=f"Column '{column}' missing from table '{table}'",
        )
        for table in sorted(set(expected_columns) & set(actual_columns))
        for column in sorted(expected_columns[table] - actual_columns[table])
    ]

    return SchemaValidationResult(
        valid=not missing_tables and not missing_columns,
        missing_tables=missing_tables,
        missing_columns=missing_columns,
        extra_tables=extra_tables,
    )
