"""Tests for column rename and Allow Null edits."""
import asyncio
import logging

from shared.constants import NULL_TOGGLE_ERROR
from shared.exceptions import ColumnNotFound
from views.editable_field import FieldStatus
from views.table_structure import StructureEditController, TableStructure


def _email_row(controller):
    return controller.build_rows()[1]


def test_rename_updates_columns_and_row_cache(users_table, fake_client):
    controller = StructureEditController(users_table, fake_client)
    row = _email_row(controller)

    assert asyncio.run(controller.rename(row, "email_address"))

    assert fake_client.remote_calls("rename_column") == [
        ("rename_column", "users", "email", "email_address")
    ]
    assert users_table.column_names() == ["id", "email_address"]
    assert [r["email_address"] for r in users_table.rows] == ["a@x.com", "b@x.com"]
    assert all("email" not in r for r in users_table.rows)
    assert row.column_name == "email_address"
    assert row.name.value == "email_address"
    assert row.name.status is FieldStatus.IDLE


def test_rejected_rename_reverts(users_table, make_client):
    client = make_client(reject={"rename_column"})
    controller = StructureEditController(users_table, client)
    row = _email_row(controller)

    assert not asyncio.run(controller.rename(row, "email_address"))

    assert row.name.value == "email"
    assert row.column_name == "email"
    assert row.name.status is FieldStatus.ERROR
    assert row.name.diagnostic == (
        "Could not change field name from email to email_address: "
        "rename_column failed: server said no"
    )
    assert users_table.column_names() == ["id", "email"]
    assert users_table.rows[0] == {"id": 1, "email": "a@x.com"}


def test_rename_to_same_name_makes_no_call(users_table, fake_client):
    controller = StructureEditController(users_table, fake_client)
    row = _email_row(controller)

    assert not asyncio.run(controller.rename(row, "  email "))
    assert fake_client.remote_calls("rename_column") == []


def test_rename_of_vanished_column_fails_locally(users_table, fake_client):
    controller = StructureEditController(users_table, fake_client)
    row = _email_row(controller)
    users_table.columns.pop()

    assert not asyncio.run(controller.rename(row, "mail"))
    assert isinstance(row.name.error, ColumnNotFound)
    assert row.name.diagnostic == "Could not find the column 'email' in table 'users'"
    assert fake_client.remote_calls("rename_column") == []


def test_second_rename_uses_confirmed_name(users_table, fake_client):
    controller = StructureEditController(users_table, fake_client)
    row = _email_row(controller)

    asyncio.run(controller.rename(row, "mail"))
    asyncio.run(controller.rename(row, "contact"))

    assert fake_client.remote_calls("rename_column")[-1] == ("rename_column", "users", "mail", "contact")
    assert users_table.column_names() == ["id", "contact"]


def test_allow_null_change_confirmed(users_table, fake_client):
    controller = StructureEditController(users_table, fake_client, always_report_null_errors=False)
    row = _email_row(controller)

    assert asyncio.run(controller.set_allow_null(row, False))

    assert fake_client.remote_calls("set_column_nullability") == [
        ("set_column_nullability", "users", "email", False)
    ]
    assert users_table.get_column("email").allow_null is False
    assert row.allow_null.value is False
    assert row.allow_null.diagnostic == ""


def test_allow_null_legacy_diagnostic_on_success(users_table, fake_client):
    controller = StructureEditController(users_table, fake_client)
    row = _email_row(controller)

    assert asyncio.run(controller.set_allow_null(row, False))
    assert row.allow_null.value is False
    assert row.allow_null.diagnostic == NULL_TOGGLE_ERROR


def test_allow_null_rejected_reverts(users_table, make_client):
    client = make_client(reject={"set_column_nullability"})
    controller = StructureEditController(users_table, client, always_report_null_errors=False)
    row = _email_row(controller)

    assert not asyncio.run(controller.set_allow_null(row, False))
    assert row.allow_null.value is True
    assert row.allow_null.status is FieldStatus.ERROR
    assert row.allow_null.diagnostic == NULL_TOGGLE_ERROR
    assert users_table.get_column("email").allow_null is True


def test_allow_null_follows_rename(users_table, fake_client):
    controller = StructureEditController(users_table, fake_client)
    row = _email_row(controller)

    asyncio.run(controller.rename(row, "mail"))
    asyncio.run(controller.set_allow_null(row, False))

    assert fake_client.remote_calls("set_column_nullability") == [
        ("set_column_nullability", "users", "mail", False)
    ]


def test_structure_load_rebuilds_rows(users_table, fake_client, app_view):
    section = TableStructure(users_table, fake_client, app_view)
    context = asyncio.run(section.render())

    assert [r.column_name for r in context["rows"]] == ["id", "email"]
    assert section.version == 1
    assert section.find_row("email") is context["rows"][1]
    assert section.find_row("missing") is None
    assert app_view.main["section"] == "structure"
    assert app_view.loading is False


def test_structure_load_failure_renders_error(users_table, make_client, app_view):
    section = TableStructure(users_table, make_client(reject={"get_full_columns"}), app_view)
    app_view.set_loading(True)
    context = asyncio.run(section.render())

    assert context["error"] == "get_full_columns failed: server said no"
    assert app_view.loading is False


def test_rejected_rename_is_logged_under_its_table(users_table, make_client, caplog):
    client = make_client(reject={"rename_column"})
    controller = StructureEditController(users_table, client)
    row = _email_row(controller)

    with caplog.at_level(logging.ERROR):
        asyncio.run(controller.rename(row, "email_address"))

    [record] = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert record.database_name == "shop.db"
    assert record.table_name == "users"
