"""Tests for section switching, persistence and the delete-table flow."""
import asyncio

import pytest

from conftest import MemoryStore
from shared.constants import SELECTION_KEY, ZONE_LEFT, ZONE_RIGHT
from shared.exceptions import InvalidSection
from views.content_view import ContentView, parse_section, resolve_section
from views.persisted_selection import PersistedSelection


def _content_view(table, client, app_view, store=None):
    store = store if store is not None else MemoryStore()
    return ContentView(table, client, app_view, PersistedSelection(store))


def test_parse_section():
    assert parse_section("info") == "info"
    with pytest.raises(InvalidSection):
        parse_section("bogus")


@pytest.mark.parametrize("key", [None, "", "bogus", 3])
def test_resolve_section_falls_back_to_content(key):
    assert resolve_section(key) == "content"


def test_constructor_shows_loading(users_table, fake_client, app_view):
    _content_view(users_table, fake_client, app_view)
    assert app_view.loading is True


@pytest.mark.parametrize("section", ["structure", "content", "info", "query"])
def test_activate_persists_and_renders(section, users_table, fake_client, app_view):
    store = MemoryStore()
    cv = _content_view(users_table, fake_client, app_view, store)

    assert asyncio.run(cv.activate(section)) == section
    assert store.values[SELECTION_KEY] == section
    assert app_view.main["section"] == section
    assert app_view.loading is False


@pytest.mark.parametrize("section", [None, "bogus"])
def test_activate_invalid_section_uses_content(section, users_table, fake_client, app_view):
    store = MemoryStore()
    cv = _content_view(users_table, fake_client, app_view, store)

    assert asyncio.run(cv.activate(section)) == "content"
    assert store.values[SELECTION_KEY] == "content"
    assert app_view.main["section"] == "content"


def test_activate_side_effect_order(users_table, fake_client, app_view):
    cv = _content_view(users_table, fake_client, app_view)
    events = []

    set_loading = app_view.set_loading
    app_view.set_loading = lambda on: (events.append(("loading", on)), set_loading(on))
    selection_set = cv.selection.set
    cv.selection.set = lambda value: (events.append(("persist", value)), selection_set(value))
    pane_close = app_view.pane.close
    app_view.pane.close = lambda: (events.append(("pane", "close")), pane_close())
    render = cv.tableinfo.render

    async def recording_render():
        events.append(("render", "info"))
        return await render()

    cv.tableinfo.render = recording_render
    asyncio.run(cv.activate("info"))

    assert events == [
        ("loading", True),
        ("persist", "info"),
        ("pane", "close"),
        ("render", "info"),
        ("loading", False),
    ]


def test_query_section_opens_pane_after_close(users_table, fake_client, app_view):
    cv = _content_view(users_table, fake_client, app_view)
    asyncio.run(cv.activate("query"))
    assert app_view.pane.is_open
    asyncio.run(cv.activate("content"))
    assert not app_view.pane.is_open


def test_start_renders_remembered_section(users_table, fake_client, app_view):
    store = MemoryStore({SELECTION_KEY: "structure"})
    cv = _content_view(users_table, fake_client, app_view, store)

    asyncio.run(cv.start())
    assert app_view.main["section"] == "structure"
    assert cv.current_section == "structure"


def test_start_with_failing_store_uses_default(users_table, fake_client, app_view):
    cv = _content_view(users_table, fake_client, app_view, MemoryStore(fail_reads=True))
    asyncio.run(cv.start())
    assert app_view.main["section"] == "content"


def test_triggers_registered_once_per_section(users_table, fake_client, app_view):
    cv = _content_view(users_table, fake_client, app_view, MemoryStore({SELECTION_KEY: "info"}))
    cv.register_triggers()

    left = app_view.toolbar.zone(ZONE_LEFT)
    assert [i.label for i in left] == ["Structure", "Content", "Table Info", "Query"]
    assert [i.is_active for i in left] == [False, False, True, False]
    assert [i.label for i in app_view.toolbar.zone(ZONE_RIGHT)] == ["Delete table"]


def test_active_flags_do_not_follow_navigation(users_table, fake_client, app_view):
    cv = _content_view(users_table, fake_client, app_view)
    asyncio.run(cv.start())

    asyncio.run(app_view.toolbar.get("Structure").callback())

    assert app_view.main["section"] == "structure"
    assert app_view.toolbar.get("Content").is_active
    assert not app_view.toolbar.get("Structure").is_active


def test_trigger_callback_activates_section(users_table, fake_client, app_view):
    store = MemoryStore()
    cv = _content_view(users_table, fake_client, app_view, store)
    cv.register_triggers()

    asyncio.run(app_view.toolbar.get("Query").callback())
    assert store.values[SELECTION_KEY] == "query"


def test_delete_table_requires_confirmation(users_table, fake_client, app_view):
    cv = _content_view(users_table, fake_client, app_view)
    asyncio.run(cv.confirm_and_delete_table())

    pending = app_view.confirmation.pending
    assert pending.title == "Delete table “users”?"
    assert pending.body == "Deleting this table will remove all data.\nAre you really sure?"
    assert (pending.confirm_label, pending.cancel_label) == ("Delete table", "Cancel")
    assert fake_client.remote_calls("drop_table") == []

    assert asyncio.run(app_view.confirmation.confirm()) is True
    assert fake_client.remote_calls("drop_table") == [("drop_table", "users")]
    assert app_view.location == "#/database/shop.db/"
    assert app_view.confirmation.pending is None


def test_cancel_leaves_table_alone(users_table, fake_client, app_view):
    cv = _content_view(users_table, fake_client, app_view)
    asyncio.run(cv.confirm_and_delete_table())
    app_view.confirmation.cancel()

    assert fake_client.remote_calls("drop_table") == []
    assert app_view.location == "#/"
    assert asyncio.run(app_view.confirmation.confirm()) is None


def test_failed_delete_does_not_navigate(users_table, make_client, app_view):
    client = make_client(reject={"drop_table"})
    cv = _content_view(users_table, client, app_view)
    asyncio.run(cv.confirm_and_delete_table())

    assert asyncio.run(app_view.confirmation.confirm()) is False
    assert app_view.location == "#/"
    assert app_view.pop_alerts() == ["Could not delete table users: server said no"]
