"""Application logging: console output plus an app_logs table in the state DB.

Structural edits log against the table they touch. Pass
``extra=table_context(database, table)`` and the record is stored with
the database and table name, so the logs accordion can list everything
that happened to one table. Call setup_logging() once at app startup.
"""

import logging
import sqlite3
import threading
from datetime import datetime, timedelta, timezone

from db import operations

_BATCH_SIZE = 10

# Third-party loggers capped at WARNING
_NOISY_LOGGERS = ("httpx", "httpcore", "urllib3", "gradio", "uvicorn",
                  "uvicorn.access", "asyncio", "watchfiles")

_INSERT = (
    "INSERT INTO app_logs (timestamp, level, logger, function, database_name, table_name, message)"
    " VALUES (?, ?, ?, ?, ?, ?, ?)"
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _connect() -> sqlite3.Connection:
    conn = sqlite3.connect(str(operations.DB_PATH), timeout=5)
    conn.execute("PRAGMA busy_timeout = 3000")
    return conn


def table_context(database: str, table: str) -> dict:
    """`extra` mapping that files a log record under one table."""
    return {"database_name": database or "", "table_name": table or ""}


class SQLiteLogHandler(logging.Handler):
    """Writes records to app_logs.

    INFO and below are buffered and written every _BATCH_SIZE records;
    WARNING and above flush the buffer immediately.
    """

    def __init__(self):
        super().__init__()
        self._pending: list[tuple] = []
        self._lock = threading.Lock()

    def _row(self, record: logging.LogRecord) -> tuple:
        return (
            _utcnow().isoformat(timespec="seconds"),
            record.levelname,
            record.name,
            record.funcName or "",
            getattr(record, "database_name", ""),
            getattr(record, "table_name", ""),
            record.getMessage(),
        )

    def emit(self, record: logging.LogRecord):
        try:
            row = self._row(record)
        except Exception:
            self.handleError(record)
            return
        with self._lock:
            self._pending.append(row)
            if record.levelno >= logging.WARNING or len(self._pending) >= _BATCH_SIZE:
                self._write_pending()

    def _write_pending(self):
        """Caller must hold self._lock."""
        if not self._pending:
            return
        rows, self._pending = self._pending, []
        try:
            conn = _connect()
            try:
                conn.executemany(_INSERT, rows)
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error:
            # State DB not initialised yet, records are dropped
            pass

    def flush(self):
        with self._lock:
            self._write_pending()

    def close(self):
        self.flush()
        super().close()


def _db_handlers() -> list[SQLiteLogHandler]:
    return [h for h in logging.getLogger().handlers if isinstance(h, SQLiteLogHandler)]


def setup_logging(level: int | str = logging.INFO):
    """Attach console and app_logs handlers to the root logger.

    A level name from the settings table is accepted. Calling it again
    is a no-op.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    root = logging.getLogger()
    if _db_handlers():
        return
    root.setLevel(level)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(
        "%(asctime)s  %(levelname)-8s  %(name)s.%(funcName)s  %(message)s",
        datefmt="%H:%M:%S",
    ))
    root.addHandler(console)

    db_handler = SQLiteLogHandler()
    db_handler.setLevel(level)
    root.addHandler(db_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logs(
    level: str = "",
    logger_name: str = "",
    table: str = "",
    limit: int = 100,
    since: str = "",
) -> list[dict]:
    """Recent app_logs rows, newest first.

    Args:
        level: Exact level name, e.g. 'ERROR'. Empty = all levels.
        logger_name: Substring of the logger name, e.g. 'table_structure'.
        table: Only records filed under this table.
        limit: Max rows to return.
        since: ISO timestamp; only return logs at or after this time.

    Returns:
        List of row dicts. Empty if the state DB is not available.
    """
    for handler in _db_handlers():
        handler.flush()

    filters = {
        "level = ?": level,
        "logger LIKE ?": f"%{logger_name}%" if logger_name else "",
        "table_name = ?": table,
        "timestamp >= ?": since,
    }
    clauses = [clause for clause, value in filters.items() if value]
    params: list = [value for value in filters.values() if value]
    where = (" WHERE " + " AND ".join(clauses)) if clauses else ""
    params.append(limit)

    try:
        conn = _connect()
        conn.row_factory = sqlite3.Row
        try:
            rows = conn.execute(
                f"SELECT * FROM app_logs{where} ORDER BY id DESC LIMIT ?", params
            ).fetchall()
        finally:
            conn.close()
    except sqlite3.Error:
        return []
    return [dict(r) for r in rows]


def cleanup_old_logs(days: int = 30) -> int:
    """Delete app_logs rows older than `days`. Returns the number removed."""
    cutoff = (_utcnow() - timedelta(days=days)).isoformat(timespec="seconds")
    try:
        conn = _connect()
        try:
            cursor = conn.execute("DELETE FROM app_logs WHERE timestamp < ?", (cutoff,))
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()
    except sqlite3.Error:
        # First run, nothing to clean
        return 0
