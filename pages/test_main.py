"""Smoke tests for the Gradio page."""
import asyncio

import gradio as gr

from db.models import Table
from db.server import ServerSession
from pages.main import Workspace, _bind_rename, build_page
from shared.constants import SELECTION_KEY
from views.content_view import ContentView
from views.editable_field import EditableField, FieldStatus, ToggleField
from views.persisted_selection import BrowserStore, PersistedSelection
from views.table_structure import ColumnRow


def test_build_page_inside_blocks(state_db):
    with gr.Blocks() as demo:
        page = build_page()
    assert callable(page['load'])
    assert len(page['load_inputs']) == 1
    assert len(page['load_outputs']) == 5
    assert demo is not None


def test_load_returns_workspace_and_defaults(state_db):
    with gr.Blocks():
        page = build_page()
    ws, hostname, username, password, port = page['load']({})
    assert isinstance(ws, Workspace)
    assert (hostname, username, password, port) == ("localhost", "root", "", "")


def test_load_restores_what_this_browser_remembered(state_db):
    with gr.Blocks():
        page = build_page()
    saved = {SELECTION_KEY: "structure", "connect_hostname": "/srv/db"}
    ws, hostname, *_ = page['load'](saved)
    assert hostname == "/srv/db"
    assert PersistedSelection(ws.store).get() == "structure"


def test_load_ignores_unreadable_browser_value(state_db):
    with gr.Blocks():
        page = build_page()
    ws, hostname, *_ = page['load'](None)
    assert hostname == "localhost"
    assert ws.store.snapshot() == {}


def test_sessions_do_not_share_remembered_values():
    a, b = Workspace(), Workspace()
    PersistedSelection(a.store).set("structure")
    a.store.set("connection_token", "abc")

    assert PersistedSelection(b.store).get() is None
    assert b.store.get("connection_token") is None
    assert a.store.snapshot() == {SELECTION_KEY: "structure", "connection_token": "abc"}


def test_workspace_screens(tmp_path, fake_client):
    ws = Workspace(store=BrowserStore())
    assert ws.screen() == "login"

    ws.session = ServerSession(tmp_path, "root", "token")
    assert ws.screen() == "database"

    table = Table("users", database_name="shop.db")
    ws.contentview = ContentView(table, fake_client, ws.app_view, PersistedSelection(ws.store))
    assert ws.screen() == "database"

    ws.app_view.navigate("#/table/shop.db/users/")
    assert ws.screen() == "table"


def test_overlapping_rename_commits_keep_box_locked():
    async def scenario():
        gate = asyncio.Event()

        async def slow_commit(_old, _new):
            await gate.wait()

        row = ColumnRow("email", EditableField("email", slow_commit), ToggleField(True, slow_commit))
        begin, commit = _bind_rename(row)
        begin("email")

        blur = commit("mail")
        await blur.__anext__()
        submit = commit("mail")
        await submit.__anext__()

        blur_final = asyncio.create_task(blur.__anext__())
        await asyncio.sleep(0)
        assert row.name.status is FieldStatus.COMMITTING

        submit_final = await submit.__anext__()
        gate.set()
        box, _diag = await blur_final
        return submit_final, box, row

    submit_final, box, row = asyncio.run(scenario())
    assert not any(isinstance(update, gr.Textbox) for update in submit_final)
    assert box.value == "mail"
    assert row.name.status is FieldStatus.IDLE
