"""Structure section: column list with inline rename and Allow Null toggles."""
import logging
from dataclasses import dataclass

from db.models import Table
from db.server import DatabaseClient
from services.log_config import table_context
from shared.constants import NULL_TOGGLE_ERROR
from shared.exceptions import ColumnNotFound, TableDeskError
from views.app_view import AppView
from views.base import Section
from views.editable_field import EditableField, ToggleField

logger = logging.getLogger(__name__)


@dataclass
class ColumnRow:
    """Editable cells of one structure grid row.

    `column_name` tracks the server-confirmed name and is what both cells
    use to find their column.
    """
    column_name: str
    name: EditableField
    allow_null: ToggleField


class StructureEditController:
    """Column rename and nullability changes for one table.

    Rename is confirm-then-reflect: the column list and the row cache
    change only after the server accepts the new name. The Allow Null
    checkbox is reflect-then-confirm: it flips on click and is put back
    if the server refuses.

    With `always_report_null_errors` set, a confirmed nullability change
    still records the NULL-setting diagnostic, as earlier releases did.
    """

    def __init__(self, table: Table, client: DatabaseClient, always_report_null_errors: bool = True):
        self.table = table
        self.client = client
        self.always_report_null_errors = always_report_null_errors
        self.log_context = table_context(table.database_name, table.name)

    def build_rows(self) -> list[ColumnRow]:
        """Fresh cells for the current column list. Call on every render."""
        return [self._build_row(column.name, column.allow_null) for column in self.table.columns]

    def _build_row(self, column_name: str, allow_null: bool) -> ColumnRow:
        row = ColumnRow(column_name=column_name, name=None, allow_null=None)

        async def commit_rename(old_name, new_name):
            if self.table.get_column(old_name) is None:
                raise ColumnNotFound(old_name, self.table.name)
            logger.info("Changing %s to %s", old_name, new_name, extra=self.log_context)
            await self.client.rename_column(self.table.name, old_name, new_name)

        def renamed(old_name, new_name):
            row.column_name = new_name
            self._apply_rename(old_name, new_name)

        async def commit_null(_previous, allow):
            if self.table.get_column(row.column_name) is None:
                raise ColumnNotFound(row.column_name, self.table.name)
            logger.info("Setting allow null on %s to %s", row.column_name, allow,
                        extra=self.log_context)
            await self.client.set_column_nullability(self.table.name, row.column_name, allow)

        def null_changed(_previous, allow):
            column = self.table.get_column(row.column_name)
            if column is not None:
                column.allow_null = allow

        row.name = EditableField(
            column_name,
            commit_rename,
            on_success=renamed,
            failure_message=_rename_failure,
            normalize=lambda text: text.strip() if isinstance(text, str) else text,
            log_context=self.log_context,
        )
        row.allow_null = ToggleField(
            bool(allow_null),
            commit_null,
            on_success=null_changed,
            failure_message=_null_failure,
            log_context=self.log_context,
        )
        return row

    def _apply_rename(self, old_name: str, new_name: str) -> None:
        column = self.table.get_column(old_name)
        if column is not None:
            column.name = new_name
        self.table.rename_cached_key(old_name, new_name)

    async def rename(self, row: ColumnRow, new_name: str) -> bool:
        """Begin and commit a rename in one step (keyboard confirm)."""
        if not row.name.begin_edit():
            return False
        return await row.name.commit(new_name)

    async def set_allow_null(self, row: ColumnRow, allow: bool) -> bool:
        confirmed = await row.allow_null.toggle(allow)
        if confirmed and self.always_report_null_errors:
            row.allow_null.diagnostic = NULL_TOGGLE_ERROR
            logger.error(NULL_TOGGLE_ERROR, extra=self.log_context)
        return confirmed


def _rename_failure(old_name, new_name, error: TableDeskError) -> str:
    if isinstance(error, ColumnNotFound):
        return str(error)
    return f"Could not change field name from {old_name} to {new_name}: {error}"


def _null_failure(_previous, _attempted, error: TableDeskError) -> str:
    if isinstance(error, ColumnNotFound):
        return str(error)
    return NULL_TOGGLE_ERROR


class TableStructure(Section):
    name = "structure"

    def __init__(self, table: Table, client: DatabaseClient, app_view: AppView,
                 always_report_null_errors: bool = True):
        super().__init__(table, client, app_view)
        self.controller = StructureEditController(table, client, always_report_null_errors)
        self.rows: list[ColumnRow] = []
        # Bumped whenever the cells are rebuilt
        self.version = 0

    async def load(self) -> dict:
        self.table.columns = await self.client.get_full_columns(self.table.name)
        self.rows = self.controller.build_rows()
        self.version += 1
        return {"table": self.table, "columns": self.table.columns, "rows": self.rows}

    def find_row(self, column_name: str):
        for row in self.rows:
            if row.column_name == column_name:
                return row
        return None
