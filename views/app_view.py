"""Application shell state shared by the views of one browser session.

Holds the collaborators the content views talk to: loading indicator,
toolbar, side pane, confirmation dialog and the current location. One
AppView is created per session and handed to the views explicitly; the
Gradio page reads it back to decide what to show.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

Callback = Callable[[], Awaitable[Any]]


@dataclass
class ToolbarItem:
    zone: str
    label: str
    callback: Callback
    is_active: bool = False


class Toolbar:
    """Registry of navigation triggers; rendering is up to the page."""

    def __init__(self):
        self.items: list[ToolbarItem] = []

    def clear(self) -> None:
        self.items = []

    def add_item(self, zone: str, label: str, callback: Callback, is_active: bool = False) -> ToolbarItem:
        item = ToolbarItem(zone, label, callback, is_active)
        self.items.append(item)
        return item

    def get(self, label: str) -> Optional[ToolbarItem]:
        for item in self.items:
            if item.label == label:
                return item
        return None

    def zone(self, zone: str) -> list[ToolbarItem]:
        return [i for i in self.items if i.zone == zone]


class Pane:
    """Side pane (the query console lives here)."""

    def __init__(self):
        self.is_open = False

    def open(self) -> None:
        self.is_open = True

    def close(self) -> None:
        self.is_open = False


@dataclass
class Confirmation:
    title: str
    body: str
    confirm_label: str
    cancel_label: str
    on_confirm: Callback


class ConcernedConfirmation:
    """Two-step confirmation for destructive actions.

    `display()` only records the request; `on_confirm` runs when the user
    presses the confirm affordance and never on cancel.
    """

    def __init__(self):
        self.pending: Optional[Confirmation] = None

    def display(self, title: str, body: str, confirm_label: str, cancel_label: str,
                on_confirm: Callback) -> Confirmation:
        self.pending = Confirmation(title, body, confirm_label, cancel_label, on_confirm)
        return self.pending

    async def confirm(self) -> Any:
        pending, self.pending = self.pending, None
        if pending is None:
            return None
        return await pending.on_confirm()

    def cancel(self) -> None:
        if self.pending is not None:
            logger.info("Cancelled: %s", self.pending.title)
        self.pending = None


@dataclass
class AppView:
    toolbar: Toolbar = field(default_factory=Toolbar)
    pane: Pane = field(default_factory=Pane)
    confirmation: ConcernedConfirmation = field(default_factory=ConcernedConfirmation)
    loading: bool = False
    location: str = "#/"
    # Render context of the section currently in the main area
    main: Optional[dict] = None
    alerts: list[str] = field(default_factory=list)

    def set_loading(self, loading: bool) -> None:
        self.loading = bool(loading)

    def navigate(self, location: str) -> None:
        logger.info("Navigating to %s", location)
        self.location = location

    def show(self, section: str, context: dict) -> None:
        self.main = {"section": section, **context}

    def alert(self, message: str) -> None:
        self.alerts.append(message)

    def pop_alerts(self) -> list[str]:
        alerts, self.alerts = self.alerts, []
        return alerts
