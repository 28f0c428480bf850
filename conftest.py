"""Shared pytest fixtures for TableDesk."""
import sqlite3

import pytest

from db import operations
from db.models import Column, Table
from db.server import QueryResult
from shared.exceptions import RemoteRejected
from views.app_view import AppView


@pytest.fixture
def state_db(tmp_path, monkeypatch):
    """Point the local state database at a fresh file and create its tables."""
    path = tmp_path / "state.db"
    monkeypatch.setattr(operations, "DB_PATH", path)
    operations.init_database()
    return path


@pytest.fixture
def server_dir(tmp_path):
    """A server directory holding shop.db (users table) and an unrelated file."""
    root = tmp_path / "server"
    root.mkdir()
    conn = sqlite3.connect(str(root / "shop.db"))
    conn.executescript("""
        CREATE TABLE users (
            id INTEGER PRIMARY KEY,
            email TEXT,
            name TEXT NOT NULL DEFAULT 'anon'
        );
        INSERT INTO users (id, email, name) VALUES (1, 'a@x.com', 'Ann');
        INSERT INTO users (id, email, name) VALUES (2, NULL, 'Bob');
        CREATE INDEX idx_users_email ON users(email);
        CREATE TABLE orders (id INTEGER PRIMARY KEY, user_id INTEGER);
    """)
    conn.commit()
    conn.close()
    (root / "notes.txt").write_text("not a database")
    return root


class MemoryStore:
    """In-memory stand-in for the settings table."""

    def __init__(self, values=None, fail_reads=False):
        self.values = dict(values or {})
        self.fail_reads = fail_reads

    def get(self, key):
        if self.fail_reads:
            raise sqlite3.OperationalError("database is locked")
        return self.values.get(key)

    def set(self, key, value):
        self.values[key] = value


class FakeClient:
    """Records remote calls; operations listed in `reject` raise RemoteRejected."""

    name = "shop.db"

    def __init__(self, columns=None, rows=None, reject=()):
        self.columns = columns if columns is not None else [
            Column("id", "INTEGER", allow_null=False, primary_key=True),
            Column("email", "TEXT", allow_null=True),
        ]
        self.rows = rows if rows is not None else [{"id": 1, "email": "a@x.com"}]
        self.reject = set(reject)
        self.calls = []

    def _record(self, operation, *args):
        self.calls.append((operation, *args))
        if operation in self.reject:
            raise RemoteRejected(operation, "server said no")

    async def get_full_columns(self, table):
        self._record("get_full_columns", table)
        return [Column(c.name, c.type, c.allow_null, c.default, c.primary_key) for c in self.columns]

    async def get_rows(self, table, limit):
        self._record("get_rows", table, limit)
        return [dict(r) for r in self.rows[:limit]]

    async def get_table_info(self, table):
        self._record("get_table_info", table)
        return {"name": table, "rows": len(self.rows), "columns": len(self.columns)}

    async def query(self, sql):
        self._record("query", sql)
        if sql.lstrip().upper().startswith("SELECT"):
            names = [c.name for c in self.columns]
            return QueryResult(names, [dict(r) for r in self.rows])
        return QueryResult([], [], rowcount=1)

    async def rename_column(self, table, old_name, new_name):
        self._record("rename_column", table, old_name, new_name)

    async def set_column_nullability(self, table, column, allow_null):
        self._record("set_column_nullability", table, column, allow_null)

    async def drop_table(self, table):
        self._record("drop_table", table)

    def remote_calls(self, operation):
        return [c for c in self.calls if c[0] == operation]


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def make_client():
    return FakeClient


@pytest.fixture
def app_view():
    return AppView()


@pytest.fixture
def users_table():
    return Table(
        name="users",
        database_name="shop.db",
        columns=[
            Column("id", "INTEGER", allow_null=False, primary_key=True),
            Column("email", "TEXT", allow_null=True),
        ],
        rows=[{"id": 1, "email": "a@x.com"}, {"id": 2, "email": "b@x.com"}],
    )
