"""Shared formatting utilities for TableDesk."""

import pandas as pd


def fmt_cell(value) -> str:
    """Render a raw database value for grid display.

    Examples:
        None -> 'NULL'
        b'\\x00\\x01' -> '<BLOB 2 bytes>'
    """
    if value is None:
        return "NULL"
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"<BLOB {len(bytes(value))} bytes>"
    return str(value)


def rows_to_df(rows: list[dict], column_names: list[str]) -> pd.DataFrame:
    """Build a display DataFrame from cached row dicts.

    Args:
        rows: Row dicts keyed by column name (the table's row cache).
        column_names: Column order for display. Keys missing from a row
            show as empty strings.

    Returns:
        pd.DataFrame with display-ready data.
    """
    if not rows:
        return pd.DataFrame(columns=column_names)
    return pd.DataFrame([
        {name: fmt_cell(row[name]) if name in row else "" for name in column_names}
        for row in rows
    ], columns=column_names)
