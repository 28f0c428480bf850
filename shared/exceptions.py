"""Custom exception hierarchy for TableDesk.

All application-specific exceptions inherit from TableDeskError,
allowing callers to catch broad or narrow as needed.
"""


class TableDeskError(Exception):
    """Base exception for all TableDesk errors."""


class ValidationFailure(TableDeskError):
    """Local validation failed before any remote effect."""


class ColumnNotFound(ValidationFailure):
    """Column lookup by its pre-edit name failed."""

    def __init__(self, column_name: str, table_name: str = ""):
        self.column_name = column_name
        self.table_name = table_name
        where = f" in table '{table_name}'" if table_name else ""
        super().__init__(f"Could not find the column '{column_name}'{where}")


class InvalidSection(ValidationFailure):
    """Section key is not one of structure, content, info, query."""


class RemoteRejected(TableDeskError):
    """The database server refused a change or query."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        self.message = message
        super().__init__(f"{operation} failed: {message}")


class ConnectionFailed(TableDeskError):
    """Could not reach the database server."""
