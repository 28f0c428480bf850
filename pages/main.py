"""Main page layout: login, database picker, table sections, logs."""
import logging
from dataclasses import dataclass, field
from typing import Optional

import gradio as gr
import pandas as pd

from db.models import Table
from db.server import DatabaseClient, ServerSession
from services.settings import get_bool_setting, get_browser_secret, get_int_setting
from shared.constants import SECTIONS, SECTION_LABELS
from shared.exceptions import RemoteRejected
from tabs.tab_logs import build_logs_tab
from views.app_view import AppView
from views.content_view import ContentView
from views.editable_field import FieldStatus
from views.login import Login
from views.persisted_selection import BrowserStore, PersistedSelection
from views.table_structure import ColumnRow, StructureEditController

logger = logging.getLogger(__name__)


@dataclass
class Workspace:
    """Per-session objects kept in gr.State.

    `store` holds what this browser remembers; the page mirrors it to
    localStorage through gr.BrowserState.
    """
    store: BrowserStore = field(default_factory=BrowserStore)
    app_view: AppView = field(default_factory=AppView)
    session: Optional[ServerSession] = None
    client: Optional[DatabaseClient] = None
    contentview: Optional[ContentView] = None

    def screen(self) -> str:
        if self.session is None:
            return "login"
        if self.contentview is not None and self.app_view.location.startswith("#/table/"):
            return "table"
        return "database"


def _flush_alerts(ws: Workspace) -> None:
    for message in ws.app_view.pop_alerts():
        gr.Warning(message)


def _diagnostic_md(row: ColumnRow) -> gr.Markdown:
    text = row.name.diagnostic or row.allow_null.diagnostic
    return gr.Markdown(value=text, visible=bool(text))


# --- Structure grid handlers (one set per rendered row) ---

def _bind_rename(row: ColumnRow):
    def begin(_text):
        row.name.begin_edit()

    async def commit(text):
        if row.name.status is not FieldStatus.EDITING:
            yield gr.skip(), gr.skip()
            return
        # Dimmed and locked until the server answers
        yield gr.Textbox(interactive=False, elem_classes=["pending"]), gr.skip()
        await row.name.commit(text)
        if row.name.status is FieldStatus.COMMITTING:
            # An overlapping blur/submit owns the commit and will unlock the box
            yield gr.skip(), gr.skip()
            return
        yield gr.Textbox(value=row.name.value, interactive=True, elem_classes=[]), _diagnostic_md(row)

    return begin, commit


def _bind_toggle(controller: StructureEditController, row: ColumnRow):
    async def toggle(checked):
        yield gr.Checkbox(value=checked, interactive=False), gr.skip()
        await controller.set_allow_null(row, checked)
        yield gr.Checkbox(value=row.allow_null.value, interactive=True), _diagnostic_md(row)

    return toggle


def build_page():
    """Build the TableDesk single-page layout.

    Must be called from within a `with gr.Blocks():` context.
    """
    ws_state = gr.State(None)
    browser_state = gr.BrowserState(
        {}, storage_key="tabledesk", secret=get_browser_secret(),
    )
    structure_version = gr.State(0)

    gr.Markdown("# TableDesk")
    location_md = gr.Markdown("")

    # === LOGIN ===
    with gr.Column(visible=True) as login_col:
        gr.Markdown("### Connect to server")
        with gr.Row():
            hostname = gr.Textbox(label="Hostname", interactive=True)
            port = gr.Textbox(label="Port", interactive=True)
        with gr.Row():
            username = gr.Textbox(label="Username", interactive=True)
            password = gr.Textbox(label="Password", type="password", interactive=True)
        connect_btn = gr.Button("Connect", variant="primary")

    # === DATABASE PICKER ===
    with gr.Column(visible=False) as database_col:
        gr.Markdown("### Databases")
        with gr.Row():
            database_dd = gr.Dropdown(label="Database", choices=[], interactive=True)
            table_dd = gr.Dropdown(label="Table", choices=[], interactive=True)
        open_btn = gr.Button("Open table", variant="primary")

    # === TABLE ===
    with gr.Column(visible=False) as table_col:
        with gr.Row():
            section_btns = {
                section: gr.Button(SECTION_LABELS[section], variant="secondary", size="sm")
                for section in SECTIONS
            }
            back_btn = gr.Button("Databases", size="sm")
            delete_btn = gr.Button("Delete table", variant="stop", size="sm")
        loading_md = gr.Markdown("Loading…", visible=False)

        with gr.Column(visible=False) as confirm_col:
            confirm_title = gr.Markdown("")
            confirm_body = gr.Markdown("")
            with gr.Row():
                confirm_btn = gr.Button("Delete table", variant="stop")
                cancel_btn = gr.Button("Cancel")

        with gr.Column(visible=False) as structure_col:

            @gr.render(inputs=[ws_state, structure_version], triggers=[structure_version.change])
            def _structure_grid(ws, _version):
                if ws is None or ws.contentview is None:
                    return
                structure = ws.contentview.tablestructure
                if not structure.rows:
                    gr.Markdown("_No columns_")
                    return
                controller = structure.controller
                for row in structure.rows:
                    column = ws.contentview.table.get_column(row.column_name)
                    with gr.Row(equal_height=True):
                        name_box = gr.Textbox(
                            value=row.name.value, show_label=False, container=False,
                            interactive=True, scale=3,
                        )
                        gr.Markdown(column.type if column else "")
                        null_box = gr.Checkbox(
                            value=row.allow_null.value, label="Allow Null",
                            container=False, interactive=True,
                        )
                        gr.Markdown("PK" if column is not None and column.primary_key else "")
                    diag = gr.Markdown(visible=False, elem_classes=["diagnostic"])

                    begin, commit = _bind_rename(row)
                    name_box.focus(begin, inputs=[name_box], api_visibility="private",
                                   concurrency_limit=None)
                    name_box.submit(commit, inputs=[name_box], outputs=[name_box, diag],
                                    api_visibility="private", concurrency_limit=None)
                    name_box.blur(commit, inputs=[name_box], outputs=[name_box, diag],
                                  api_visibility="private", concurrency_limit=None)
                    null_box.input(_bind_toggle(controller, row), inputs=[null_box],
                                   outputs=[null_box, diag], api_visibility="private",
                                   concurrency_limit=None)

        with gr.Column(visible=False) as content_col:
            content_grid = gr.DataFrame(interactive=False, label="Rows", wrap=True)

        with gr.Column(visible=False) as info_col:
            info_json = gr.JSON(label="Table Info")

        section_error = gr.Markdown(visible=False, elem_classes=["diagnostic"])

    # === SIDE PANE (query console) ===
    with gr.Sidebar(position="right", open=False, visible=False) as pane:
        gr.Markdown("### Query")
        query_sql = gr.Code(language="sql", interactive=True, lines=6)
        run_query_btn = gr.Button("Run", variant="primary")
        query_msg = gr.Markdown("")
        query_grid = gr.DataFrame(interactive=False, wrap=True)

    build_logs_tab()

    # --- Rendering ---

    def _render(ws: Workspace) -> dict:
        """Map the session state onto every component the handlers may touch."""
        _flush_alerts(ws)
        screen = ws.screen()
        app_view = ws.app_view
        updates = {
            ws_state: ws,
            browser_state: ws.store.snapshot(),
            location_md: gr.Markdown(value=f"`{app_view.location}`"),
            login_col: gr.Column(visible=screen == "login"),
            database_col: gr.Column(visible=screen == "database"),
            table_col: gr.Column(visible=screen == "table"),
            loading_md: gr.Markdown(visible=app_view.loading),
        }

        pending = app_view.confirmation.pending
        updates[confirm_col] = gr.Column(visible=pending is not None)
        if pending is not None:
            updates[confirm_title] = gr.Markdown(value=f"### {pending.title}")
            updates[confirm_body] = gr.Markdown(value=pending.body)
            updates[confirm_btn] = gr.Button(value=pending.confirm_label)
            updates[cancel_btn] = gr.Button(value=pending.cancel_label)

        for item in app_view.toolbar.items:
            for section, btn in section_btns.items():
                if item.label == SECTION_LABELS[section]:
                    updates[btn] = gr.Button(variant="primary" if item.is_active else "secondary")

        view = ws.contentview
        main = app_view.main or {}
        current = main.get("section") if screen == "table" else None
        updates[structure_col] = gr.Column(visible=current == "structure")
        updates[content_col] = gr.Column(visible=current == "content")
        updates[info_col] = gr.Column(visible=current == "info")
        updates[pane] = gr.Sidebar(visible=screen == "table" and app_view.pane.is_open,
                                   open=app_view.pane.is_open)
        error = main.get("error", "") if current else ""
        updates[section_error] = gr.Markdown(value=error, visible=bool(error))

        if view is not None and current == "structure":
            updates[structure_version] = view.tablestructure.version
        if current == "content" and "grid" in main:
            updates[content_grid] = main["grid"]
        if current == "info" and "info" in main:
            updates[info_json] = main["info"]
        if current == "query":
            updates[query_sql] = gr.Code(value=main.get("sql", ""))
            updates[query_msg] = main.get("message", "")
            updates[query_grid] = main.get("grid", pd.DataFrame())
        return updates

    render_outputs = [
        ws_state, browser_state, location_md, login_col, database_col, table_col, loading_md,
        confirm_col, confirm_title, confirm_body, confirm_btn, cancel_btn,
        *section_btns.values(),
        structure_col, content_col, info_col, pane, section_error,
        structure_version, content_grid, info_json, query_sql, query_msg, query_grid,
    ]

    # --- Handlers ---

    def _on_load(saved):
        ws = Workspace(store=BrowserStore(saved))
        defaults = Login(ws.app_view, ws.store).defaults()
        return (
            ws,
            defaults["hostname"], defaults["username"], defaults["password"], defaults["port"],
        )

    async def _on_connect(ws, host, user, pwd, port_value):
        ws = ws or Workspace()
        session = await Login(ws.app_view, ws.store).submit(host, user, pwd, port_value)
        updates = {}
        if session is not None:
            ws.session = session
            updates[database_dd] = gr.Dropdown(choices=session.list_databases(), value=None)
        updates.update(_render(ws))
        return updates

    async def _on_database(ws, database_name):
        if ws is None or ws.session is None or not database_name:
            return gr.Dropdown(choices=[], value=None)
        try:
            ws.client = ws.session.open_database(database_name)
            tables = await ws.client.list_tables()
        except RemoteRejected as e:
            gr.Warning(str(e))
            return gr.Dropdown(choices=[], value=None)
        return gr.Dropdown(choices=tables, value=None)

    async def _on_open(ws, database_name, table_name):
        if ws is None or ws.client is None or not table_name:
            gr.Warning("Select a database and a table first")
            return {ws_state: ws}
        table = Table(name=table_name, database_name=database_name)
        ws.contentview = ContentView(
            table,
            ws.client,
            ws.app_view,
            PersistedSelection(ws.store),
            row_limit=get_int_setting("content_row_limit"),
            always_report_null_errors=get_bool_setting("null_toggle_always_report"),
        )
        ws.app_view.navigate(f"#/table/{database_name}/{table_name}/")
        await ws.contentview.start()
        return _render(ws)

    def _on_trigger(label, shows_loading=True):
        async def handler(ws):
            item = ws.app_view.toolbar.get(label) if ws is not None else None
            if item is None:
                yield {ws_state: ws}
                return
            if shows_loading:
                ws.app_view.set_loading(True)
            yield _render(ws)
            await item.callback()
            yield _render(ws)
        return handler

    async def _on_confirm(ws):
        await ws.app_view.confirmation.confirm()
        if ws.screen() == "database":
            ws.contentview = None
        updates = _render(ws)
        if ws.screen() == "database" and ws.client is not None:
            updates[table_dd] = gr.Dropdown(choices=await ws.client.list_tables(), value=None)
        return updates

    def _on_cancel(ws):
        ws.app_view.confirmation.cancel()
        return _render(ws)

    def _on_back(ws):
        ws.app_view.navigate("#/database/")
        return _render(ws)

    async def _on_run_query(ws, sql):
        await ws.contentview.queryview.run(sql or "")
        return _render(ws)

    # --- Wiring ---

    connect_btn.click(
        _on_connect,
        inputs=[ws_state, hostname, username, password, port],
        outputs=[*render_outputs, database_dd],
        api_visibility="private",
    )
    database_dd.change(
        _on_database, inputs=[ws_state, database_dd], outputs=[table_dd],
        api_visibility="private",
    )
    open_btn.click(
        _on_open, inputs=[ws_state, database_dd, table_dd], outputs=render_outputs,
        api_visibility="private",
    )
    for section, btn in section_btns.items():
        btn.click(
            _on_trigger(SECTION_LABELS[section]), inputs=[ws_state], outputs=render_outputs,
            api_visibility="private",
        )
    delete_btn.click(
        _on_trigger("Delete table", shows_loading=False), inputs=[ws_state], outputs=render_outputs,
        api_visibility="private",
    )
    confirm_btn.click(
        _on_confirm, inputs=[ws_state], outputs=[*render_outputs, table_dd],
        api_visibility="private",
    )
    cancel_btn.click(_on_cancel, inputs=[ws_state], outputs=render_outputs, api_visibility="private")
    back_btn.click(_on_back, inputs=[ws_state], outputs=render_outputs, api_visibility="private")
    run_query_btn.click(
        _on_run_query, inputs=[ws_state, query_sql], outputs=render_outputs,
        api_visibility="private",
    )

    return {
        'load': _on_load,
        'load_inputs': [browser_state],
        'load_outputs': [ws_state, hostname, username, password, port],
    }
