"""Exception types raised by notifydb.

Pool errors from SQLAlchemy (``sqlalchemy.exc.TimeoutError`` and
``DBAPIError`` raised on connect) are not wrapped and propagate unchanged.
"""


class NotifyDbError(Exception):
    """Base class for notifydb errors."""


class UnregisteredTableError(NotifyDbError, KeyError):
    """Raised when a table name has no schema definition."""

    def __init__(self, table: str) -> None:
        super().__init__(table)
        self.table = table

    def __str__(self) -> str:
        return f"No table definition registered for table '{self.table}'"


class DdlExecutionError(NotifyDbError):
    """Raised when the database rejects a CREATE or DROP statement."""

    def __init__(self, table: str, operation: str, cause: BaseException) -> None:
        super().__init__(f"Failed to {operation} table '{table}': {cause}")
        self.table = table
        self.operation = operation


class TransactionError(NotifyDbError):
    """Raised when a batch insert fails and its transaction is rolled back."""

    def __init__(self, table: str, row_count: int, cause: BaseException) -> None:
        super().__init__(
            f"Batch insert of {row_count} rows into '{table}' rolled back: {cause}"
        )
        self.table = table
        self.row_count = row_count
