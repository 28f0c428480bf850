"""Base class for the table sections (structure, content, info, query)."""
import logging

from db.models import Table
from db.server import DatabaseClient
from shared.exceptions import RemoteRejected
from views.app_view import AppView

logger = logging.getLogger(__name__)


class Section:
    """Loads its data from the server and hands a render context to the AppView.

    Subclasses implement `load()`. The loading indicator is switched off
    when rendering finishes, whether or not the fetch succeeded.
    """

    name = "base"

    def __init__(self, table: Table, client: DatabaseClient, app_view: AppView):
        self.table = table
        self.client = client
        self.app_view = app_view

    async def load(self) -> dict:
        raise NotImplementedError

    async def render(self) -> dict:
        try:
            context = await self.load()
        except RemoteRejected as e:
            logger.error("Could not render %s for %s: %s", self.name, self.table.name, e)
            context = {"table": self.table, "error": str(e)}
        finally:
            self.app_view.set_loading(False)
        self.app_view.show(self.name, context)
        return context
