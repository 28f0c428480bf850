"""Table Info section."""
from views.base import Section


class TableInfo(Section):
    name = "info"

    async def load(self) -> dict:
        info = await self.client.get_table_info(self.table.name)
        return {"table": self.table, "info": info}
