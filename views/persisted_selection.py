"""Last active section, remembered across page reloads."""
import logging
import sqlite3
from typing import Optional, Protocol

from shared.constants import SELECTION_KEY

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class PersistedSelection:
    """Stores one section key under `key` in a durable store.

    Reads never fail: a missing, unreadable or empty value comes back as
    None and the caller falls back to its default section.
    """

    def __init__(self, store: KeyValueStore, key: str = SELECTION_KEY):
        self.store = store
        self.key = key

    def get(self) -> Optional[str]:
        try:
            value = self.store.get(self.key)
        except (sqlite3.Error, OSError, ValueError) as e:
            logger.debug("Could not read %s, using default: %s", self.key, e)
            return None
        return value or None

    def set(self, value: str) -> None:
        self.store.set(self.key, value)


class BrowserStore:
    """KeyValueStore over a dict owned by one browser.

    The page loads the dict from the browser's localStorage when the
    session starts and writes `snapshot()` back after every event, so
    values are per browser profile and never shared between visitors.
    """

    def __init__(self, values: Optional[dict] = None):
        self.values = dict(values) if isinstance(values, dict) else {}

    def get(self, key: str) -> Optional[str]:
        value = self.values.get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def snapshot(self) -> dict:
        return dict(self.values)
