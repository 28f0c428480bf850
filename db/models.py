"""
Data models for tables on the connected server.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class Column:
    name: str
    type: str = ""
    allow_null: bool = True
    default: Optional[str] = None
    primary_key: bool = False


@dataclass
class Table:
    """A server-side table plus the local caches the views render from.

    `columns` is only changed after the server confirms a structural edit.
    `rows` is a display cache keyed by column name, not the source of truth.
    """
    name: str
    database_name: str = ""
    columns: list[Column] = field(default_factory=list)
    rows: list[dict[str, Any]] = field(default_factory=list)

    def get_column(self, name: str) -> Optional[Column]:
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    def rename_cached_key(self, old_name: str, new_name: str) -> None:
        """Move every cached row's value from `old_name` to `new_name`."""
        for row in self.rows:
            if old_name in row:
                row[new_name] = row.pop(old_name)
