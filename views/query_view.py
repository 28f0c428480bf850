"""Query section: a SQL console in the side pane."""
import logging

import pandas as pd

from db.server import quote_ident
from services.log_config import table_context
from shared.exceptions import RemoteRejected
from shared.formatting import rows_to_df
from views.base import Section

logger = logging.getLogger(__name__)


class QueryView(Section):
    name = "query"

    def __init__(self, table, client, app_view):
        super().__init__(table, client, app_view)
        self.sql = f"SELECT * FROM {quote_ident(table.name)} LIMIT 10"
        self.message = ""
        self.grid = pd.DataFrame()

    async def load(self) -> dict:
        self.app_view.pane.open()
        return self._context()

    def _context(self) -> dict:
        return {"table": self.table, "sql": self.sql, "message": self.message, "grid": self.grid}

    async def run(self, sql: str) -> dict:
        """Execute one statement against the table's database."""
        self.sql = sql
        if not sql.strip():
            self.message = "Enter a query to run"
            self.grid = pd.DataFrame()
        else:
            try:
                result = await self.client.query(sql)
            except RemoteRejected as e:
                self.message = e.message
                self.grid = pd.DataFrame()
            else:
                if result.columns:
                    self.message = f"{len(result.rows)} row(s)"
                    self.grid = rows_to_df(result.rows, result.columns)
                else:
                    self.message = f"Query OK, {result.rowcount} row(s) affected"
                    self.grid = pd.DataFrame()
        logger.info("Query on %s: %s", self.client.name, self.message,
                    extra=table_context(self.client.name, self.table.name))
        context = self._context()
        self.app_view.show(self.name, context)
        return context
