"""Chunked, transactional bulk inserts.

Usage:
    from notifydb.writer import BatchWriter

    writer = BatchWriter(adapter)
    await writer.batch_insert("hearings", rows, chunk_size=1000)

All chunks of one call share a single transaction: either every row
commits or, on any failure, none do and ``TransactionError`` is raised.
"""

import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from notifydb.adapters.postgres import AsyncPostgresAdapter
from notifydb.exceptions import TransactionError
from notifydb.schema.models import qualify, quote_ident

logger = logging.getLogger(__name__)

Row = Mapping[str, Any]


def chunked(rows: Sequence[Row], size: int) -> Iterator[Sequence[Row]]:
    """Yield consecutive slices of *rows* holding at most *size* rows."""
    for start in range(0, len(rows), size):
        yield rows[start:start + size]


def build_insert(
    table: str,
    rows: Sequence[Row],
    schema: str | None = None,
) -> tuple[str, dict[str, Any]]:
    """Build one multi-row INSERT statement for a chunk.

    The column list is the union of the rows' keys, in first-seen order.
    A column missing from a row is written as ``DEFAULT``.  The table is
    qualified with *schema* when one is given.

    Example:
        >>> build_insert("t", [{"a": 1}, {"a": 2, "b": 3}])
        ('INSERT INTO "t" ("a", "b") VALUES (:r0_c0, DEFAULT), (:r1_c0, :r1_c1)', {'r0_c0': 1, 'r1_c0': 2, 'r1_c1': 3})
    """
    columns: list[str] = []
    for row in rows:
        for key in row:
            if key not in columns:
                columns.append(key)

    params: dict[str, Any] = {}
    values: list[str] = []
    for i, row in enumerate(rows):
        slots: list[str] = []
        for j, column in enumerate(columns):
            if column in row:
                name = f"r{i}_c{j}"
                params[name] = row[column]
                slots.append(f":{name}")
            else:
                slots.append("DEFAULT")
        values.append(f"({', '.join(slots)})")

    column_list = ", ".join(quote_ident(c) for c in columns)
    sql = f"INSERT INTO {qualify(table, schema)} ({column_list}) VALUES {', '.join(values)}"
    return sql, params


class BatchWriter:
    """Writes rows in fixed-size chunks inside one transaction.

    Args:
        adapter: Adapter whose pool the transaction runs on.
        schema_name: PostgreSQL schema the target tables live in.  ``None``
            leaves table names to the connection's ``search_path``.
    """

    def __init__(self, adapter: AsyncPostgresAdapter, schema_name: str | None = None) -> None:
        self._adapter = adapter
        self._schema_name = schema_name

    async def batch_insert(
        self,
        table: str,
        rows: Iterable[Row],
        chunk_size: int,
    ) -> int:
        """Insert *rows* into *table*, *chunk_size* rows per statement.

        Args:
            table: Target table.
            rows: Row dicts mapping column name to value.
            chunk_size: Maximum rows per INSERT statement.  Must be positive.

        Returns:
            Number of rows inserted.

        Raises:
            ValueError: If *chunk_size* is not positive.
            TransactionError: If any chunk fails.  Nothing is committed.
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")

        rows = list(rows)
        logger.debug(f"batch inserting {len(rows)} rows into {table}")

        try:
            async with self._adapter.begin() as conn:
                for chunk in chunked(rows, chunk_size):
                    sql, params = build_insert(table, chunk, self._schema_name)
                    await conn.execute(text(sql), params)
        except SQLAlchemyError as e:
            logger.error(f"batch insert into {table} rolled back: {e}")
            raise TransactionError(table, len(rows), e) from e

        return len(rows)
