"""Login view: connect to a database server."""
import logging

from db.server import ServerSession, connect
from shared.constants import CONNECT_ERROR, DEFAULT_HOSTNAME, DEFAULT_USERNAME
from views.app_view import AppView
from views.persisted_selection import KeyValueStore

logger = logging.getLogger(__name__)


class Login:
    def __init__(self, app_view: AppView, store: KeyValueStore, connector=connect):
        self.app_view = app_view
        self.store = store
        self.connector = connector

    def defaults(self) -> dict:
        """Values pre-filled in the connect form."""
        return {
            "hostname": self.store.get("connect_hostname") or DEFAULT_HOSTNAME,
            "username": self.store.get("connect_username") or DEFAULT_USERNAME,
            "password": "",
            "port": self.store.get("connect_port") or "",
        }

    async def submit(self, hostname: str, username: str, password: str, port: str):
        """Connect; on success remember the token and go to the database list."""
        session: ServerSession | None = await self.connector(hostname, username, password, port)
        if session is None:
            self.app_view.alert(CONNECT_ERROR)
            return None

        self.store.set("connection_token", session.token)
        self.store.set("connect_hostname", hostname)
        self.store.set("connect_username", username)
        if port:
            self.store.set("connect_port", str(port).strip())
        self.app_view.navigate("#/database/")
        return session
