"""
Database server access for TableDesk.

A "server" is a directory of SQLite database files; each file is one
database. All table operations are coroutines: the blocking sqlite3 work
runs in a worker thread so the UI event loop stays responsive, and every
driver error is reported as RemoteRejected.
"""

import asyncio
import logging
import secrets
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from db.ddl import set_not_null
from db.models import Column
from shared.constants import DATABASE_EXTENSIONS, DEFAULT_HOSTNAME
from shared.exceptions import ConnectionFailed, RemoteRejected

logger = logging.getLogger(__name__)

# Directory served when connecting to "localhost"
LOCALHOST_ROOT = Path(__file__).parent.parent / "data"


def quote_ident(name: str) -> str:
    """Quote SQL identifier."""
    return '"' + name.replace('"', '""') + '"'


@dataclass
class QueryResult:
    columns: list[str] = field(default_factory=list)
    rows: list[dict[str, Any]] = field(default_factory=list)
    rowcount: int = -1


# =============================================================================
# CONNECT
# =============================================================================

def _resolve_host(hostname: str, port: str) -> Path:
    if port and not str(port).strip().isdigit():
        raise ConnectionFailed(f"Invalid port {port!r}")
    if not hostname or hostname == DEFAULT_HOSTNAME:
        root = LOCALHOST_ROOT
    else:
        root = Path(hostname).expanduser()
    if not root.is_dir():
        raise ConnectionFailed(f"No database server at {hostname!r}")
    return root


async def connect(
    hostname: str,
    username: str,
    password: str = "",
    port: str = "",
) -> Optional["ServerSession"]:
    """
    Open a session on a database server.

    Args:
        hostname: 'localhost' for the bundled data directory, otherwise a
            directory path holding database files
        username: Recorded on the session (SQLite files have no accounts)
        password: Accepted for form compatibility, not checked
        port: Optional; must be numeric when given

    Returns:
        A ServerSession carrying a fresh token, or None if the server
        could not be reached
    """
    try:
        root = await asyncio.to_thread(_resolve_host, hostname, port)
    except ConnectionFailed as e:
        logger.warning("Could not connect: %s", e)
        return None
    session = ServerSession(root=root, username=username, token=secrets.token_hex(16))
    logger.info("Connected to %s as %s", root, username or "(anonymous)")
    return session


@dataclass
class ServerSession:
    root: Path
    username: str
    token: str

    def list_databases(self) -> list[str]:
        """Database file names on this server, sorted."""
        return sorted(
            p.name for p in self.root.iterdir()
            if p.is_file() and p.suffix.lower() in DATABASE_EXTENSIONS
        )

    def open_database(self, name: str) -> "DatabaseClient":
        if name not in self.list_databases():
            raise RemoteRejected("open database", f"unknown database '{name}'")
        return DatabaseClient(self.root / name)


# =============================================================================
# DATABASE CLIENT
# =============================================================================

class DatabaseClient:
    """Table-level operations against one database file."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.name = self.path.name

    @contextmanager
    def get_connection(self):
        """Get database connection with proper settings."""
        conn = sqlite3.connect(str(self.path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    async def _call(self, operation: str, fn, *args):
        try:
            return await asyncio.to_thread(fn, *args)
        except sqlite3.Error as e:
            logger.error("%s on %s failed: %s", operation, self.name, e)
            raise RemoteRejected(operation, str(e)) from e

    # --- Reads ---------------------------------------------------------------

    def _list_tables(self) -> list[str]:
        with self.get_connection() as conn:
            rows = conn.execute("""
                SELECT name FROM sqlite_master
                WHERE type='table' AND name NOT LIKE 'sqlite_%'
                ORDER BY name
            """).fetchall()
        return [row['name'] for row in rows]

    def _full_columns(self, table: str) -> list[Column]:
        with self.get_connection() as conn:
            rows = conn.execute(f"PRAGMA table_info({quote_ident(table)})").fetchall()
        if not rows:
            raise RemoteRejected("get columns", f"no such table: {table}")
        # r: cid, name, type, notnull, dflt_value, pk
        return [
            Column(
                name=r['name'],
                type=r['type'] or "",
                allow_null=not r['notnull'],
                default=r['dflt_value'],
                primary_key=bool(r['pk']),
            )
            for r in rows
        ]

    def _rows(self, table: str, limit: int) -> list[dict]:
        with self.get_connection() as conn:
            rows = conn.execute(f"SELECT * FROM {quote_ident(table)} LIMIT ?", (limit,)).fetchall()
        return [dict(row) for row in rows]

    def _table_info(self, table: str) -> dict:
        with self.get_connection() as conn:
            master = conn.execute(
                "SELECT sql FROM sqlite_master WHERE type='table' AND name = ?", (table,)
            ).fetchone()
            if master is None:
                raise RemoteRejected("get table info", f"no such table: {table}")
            row_count = conn.execute(f"SELECT COUNT(*) FROM {quote_ident(table)}").fetchone()[0]
            columns = conn.execute(f"PRAGMA table_info({quote_ident(table)})").fetchall()
            indexes = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='index' AND tbl_name = ? AND sql IS NOT NULL",
                (table,)
            ).fetchall()
            triggers = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='trigger' AND tbl_name = ?", (table,)
            ).fetchall()
        return {
            'name': table,
            'database': self.name,
            'rows': row_count,
            'columns': len(columns),
            'indexes': [r['name'] for r in indexes],
            'triggers': [r['name'] for r in triggers],
            'create_sql': master['sql'],
        }

    def _query(self, sql: str) -> QueryResult:
        with self.get_connection() as conn:
            cursor = conn.execute(sql)
            if cursor.description is None:
                conn.commit()
                return QueryResult(rowcount=cursor.rowcount)
            columns = [d[0] for d in cursor.description]
            rows = [dict(zip(columns, row)) for row in cursor.fetchall()]
            return QueryResult(columns=columns, rows=rows, rowcount=len(rows))

    async def list_tables(self) -> list[str]:
        return await self._call("list tables", self._list_tables)

    async def get_full_columns(self, table: str) -> list[Column]:
        return await self._call("get columns", self._full_columns, table)

    async def get_rows(self, table: str, limit: int) -> list[dict]:
        return await self._call("get rows", self._rows, table, limit)

    async def get_table_info(self, table: str) -> dict:
        return await self._call("get table info", self._table_info, table)

    async def query(self, sql: str) -> QueryResult:
        return await self._call("query", self._query, sql)

    # --- Structural changes --------------------------------------------------

    def _rename_column(self, table: str, old_name: str, new_name: str) -> None:
        with self.get_connection() as conn:
            conn.execute(
                f"ALTER TABLE {quote_ident(table)} RENAME COLUMN {quote_ident(old_name)} TO {quote_ident(new_name)}"
            )
            conn.commit()

    def _set_column_nullability(self, table: str, column: str, allow_null: bool) -> None:
        """Rebuild `table` with the NOT NULL flag of `column` changed.

        SQLite cannot alter a column constraint in place. The stored CREATE
        TABLE text is edited for that one column, a copy of the table is
        created from it and filled, the original is dropped and the copy
        renamed. The table's indexes and triggers are then recreated from
        their stored SQL. Everything runs in one transaction.
        """
        conn = sqlite3.connect(str(self.path), isolation_level=None)
        conn.row_factory = sqlite3.Row
        try:
            master = conn.execute(
                "SELECT sql FROM sqlite_master WHERE type='table' AND name = ?", (table,)
            ).fetchone()
            if master is None:
                raise RemoteRejected("set nullability", f"no such table: {table}")
            try:
                definitions, suffix = set_not_null(master['sql'], column, allow_null)
            except ValueError as e:
                raise RemoteRejected("set nullability", str(e)) from e

            dependents = conn.execute(
                "SELECT sql FROM sqlite_master"
                " WHERE tbl_name = ? AND type IN ('index', 'trigger') AND sql IS NOT NULL"
                " ORDER BY type, name",
                (table,)
            ).fetchall()
            # r: cid, name, type, notnull, dflt_value, pk, hidden (generated columns are not copied)
            names = ", ".join(
                quote_ident(r['name'])
                for r in conn.execute(f"PRAGMA table_xinfo({quote_ident(table)})")
                if r['hidden'] == 0
            )
            staging = quote_ident(f"_tabledesk_rebuild_{table}")

            # Views naming the table are not re-checked by the rename
            conn.execute("PRAGMA legacy_alter_table = ON")
            conn.execute("BEGIN")
            try:
                conn.execute(f"CREATE TABLE {staging} ({definitions}){suffix}")
                conn.execute(f"INSERT INTO {staging} ({names}) SELECT {names} FROM {quote_ident(table)}")
                conn.execute(f"DROP TABLE {quote_ident(table)}")
                conn.execute(f"ALTER TABLE {staging} RENAME TO {quote_ident(table)}")
                for row in dependents:
                    conn.execute(row['sql'])
                conn.execute("COMMIT")
            except sqlite3.Error:
                conn.execute("ROLLBACK")
                raise
        finally:
            conn.close()

    def _drop_table(self, table: str) -> None:
        with self.get_connection() as conn:
            conn.execute(f"DROP TABLE {quote_ident(table)}")
            conn.commit()

    async def rename_column(self, table: str, old_name: str, new_name: str) -> None:
        await self._call("rename column", self._rename_column, table, old_name, new_name)

    async def set_column_nullability(self, table: str, column: str, allow_null: bool) -> None:
        await self._call("set nullability", self._set_column_nullability, table, column, allow_null)

    async def drop_table(self, table: str) -> None:
        await self._call("drop table", self._drop_table, table)
