"""Content section: the table's rows."""
from db.models import Table
from db.server import DatabaseClient
from shared.constants import DEFAULT_ROW_LIMIT
from shared.formatting import rows_to_df
from views.app_view import AppView
from views.base import Section


class TableView(Section):
    name = "content"

    def __init__(self, table: Table, client: DatabaseClient, app_view: AppView,
                 row_limit: int = DEFAULT_ROW_LIMIT):
        super().__init__(table, client, app_view)
        self.row_limit = row_limit

    async def load(self) -> dict:
        if not self.table.columns:
            self.table.columns = await self.client.get_full_columns(self.table.name)
        # Refill the row cache the structure edits keep in sync
        self.table.rows = await self.client.get_rows(self.table.name, self.row_limit)
        return {
            "table": self.table,
            "rows": self.table.rows,
            "grid": rows_to_df(self.table.rows, self.table.column_names()),
        }
