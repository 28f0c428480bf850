"""Content view: decides which section of a table is shown.

The ContentView owns the Structure, Content, Table Info and Query sections
of one table, registers their toolbar triggers and remembers the last
section the user opened so it comes back after a reload.
"""
import functools
import logging

from db.models import Table
from db.server import DatabaseClient
from services.log_config import table_context
from shared.constants import (
    SECTIONS, DEFAULT_SECTION, SECTION_LABELS, ZONE_LEFT, ZONE_RIGHT, DEFAULT_ROW_LIMIT,
)
from shared.exceptions import InvalidSection, RemoteRejected
from views.app_view import AppView
from views.base import Section
from views.persisted_selection import PersistedSelection
from views.query_view import QueryView
from views.table_info import TableInfo
from views.table_structure import TableStructure
from views.table_view import TableView

logger = logging.getLogger(__name__)


def parse_section(key) -> str:
    """Return `key` if it names a section, else raise InvalidSection."""
    if key not in SECTIONS:
        raise InvalidSection(f"Unknown section {key!r}")
    return key


def resolve_section(key) -> str:
    """Section for `key`, falling back to the default for absent or unknown keys."""
    try:
        return parse_section(key)
    except InvalidSection:
        if key:
            logger.debug("Ignoring unknown section %r", key)
        return DEFAULT_SECTION


class ContentView:
    """Section coordinator for one table.

    Args:
        table: Table being administered.
        client: Database the table lives in.
        app_view: Session shell (loading indicator, toolbar, pane, dialogs).
        selection: Where the last active section is remembered.
        row_limit: Rows fetched by the Content section.
        always_report_null_errors: Passed to the structure edit controller.
    """

    def __init__(
        self,
        table: Table,
        client: DatabaseClient,
        app_view: AppView,
        selection: PersistedSelection,
        row_limit: int = DEFAULT_ROW_LIMIT,
        always_report_null_errors: bool = True,
    ):
        self.app_view = app_view
        self.set_loading(True)

        self.table = table
        self.database_name = table.database_name
        self.client = client
        self.selection = selection

        self.tablestructure = TableStructure(table, client, app_view, always_report_null_errors)
        self.tableview = TableView(table, client, app_view, row_limit)
        self.tableinfo = TableInfo(table, client, app_view)
        self.queryview = QueryView(table, client, app_view)
        self.sections: dict[str, Section] = {
            "structure": self.tablestructure,
            "content": self.tableview,
            "info": self.tableinfo,
            "query": self.queryview,
        }

        # Section computed once; toolbar active flags are taken from it
        self.initial_section = resolve_section(self.selection.get())
        self.current_section = self.initial_section

    async def start(self) -> dict:
        """Register the toolbar and render the remembered section."""
        self.register_triggers()
        self.current_section = self.initial_section
        return await self.sections[self.initial_section].render()

    async def activate(self, section=None) -> str:
        """Switch the main area to `section` (default section if invalid).

        Order: loading indicator on, selection persisted, side pane
        closed, section rendered.
        """
        section = resolve_section(section)
        self.set_loading(True)
        self.selection.set(section)
        self.app_view.pane.close()
        self.current_section = section
        await self.sections[section].render()
        return section

    def register_triggers(self) -> None:
        """One toolbar trigger per section, plus Delete table."""
        toolbar = self.app_view.toolbar
        toolbar.clear()
        for section in SECTIONS:
            toolbar.add_item(
                ZONE_LEFT,
                SECTION_LABELS[section],
                functools.partial(self.activate, section),
                section == self.initial_section,
            )
        toolbar.add_item(ZONE_RIGHT, "Delete table", self.confirm_and_delete_table)

    async def confirm_and_delete_table(self) -> None:
        """Ask for confirmation; the drop runs only if the user confirms."""
        self.app_view.confirmation.display(
            f"Delete table “{self.table.name}”?",
            "Deleting this table will remove all data.\nAre you really sure?",
            "Delete table",
            "Cancel",
            self._drop_table,
        )

    async def _drop_table(self) -> bool:
        try:
            await self.client.drop_table(self.table.name)
        except RemoteRejected as e:
            logger.error("Could not delete table %s: %s", self.table.name, e,
                         extra=table_context(self.database_name, self.table.name))
            self.app_view.alert(f"Could not delete table {self.table.name}: {e.message}")
            return False
        logger.info("Deleted table %s from %s", self.table.name, self.database_name,
                    extra=table_context(self.database_name, self.table.name))
        self.app_view.navigate(f"#/database/{self.database_name}/")
        return True

    def set_loading(self, loading: bool) -> None:
        self.app_view.set_loading(loading)
