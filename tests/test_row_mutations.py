# File: tests/test_row_mutations.py | Version: 1.0 | Title: Bulk row insertion and cell writes
from __future__ import annotations

import pytest
from sqlalchemy import func

from app.core.config import settings
from app.core.errors import InvalidInputError
from app.crud import rows as crud_rows
from app.models import Cell, DataTable, TableRow


# ---------------------------
# add_rows
# ---------------------------


def test_add_rows_appends_after_existing_rows(client, auth_headers, make_table, db_session):
    body = make_table(seed_rows=5)
    tid = body["table"]["id"]

    r = client.post(f"/tables/{tid}/rows", json={"count": 3}, headers=auth_headers)
    assert r.status_code == 201, r.text
    assert r.json() == {"added": 3, "start_row_index": 5, "end_row_index": 7}

    r = client.post(f"/tables/{tid}/rows", json={"count": 2}, headers=auth_headers)
    assert r.json()["start_row_index"] == 8

    indexes = [i for (i,) in db_session.query(TableRow.row_index).filter(TableRow.table_id == tid)]
    assert sorted(indexes) == list(range(10))
    assert db_session.query(Cell).count() == 0


def test_add_rows_count_bounds(client, auth_headers, make_table):
    tid = make_table()["table"]["id"]
    assert client.post(f"/tables/{tid}/rows", json={"count": 0}, headers=auth_headers).status_code == 422
    too_many = client.post(
        f"/tables/{tid}/rows", json={"count": settings.ADD_ROWS_MAX + 1}, headers=auth_headers
    )
    assert too_many.status_code == 400


def test_add_rows_runs_in_batches(client, auth_headers, make_table, db_session, monkeypatch):
    tid = make_table()["table"]["id"]
    monkeypatch.setattr(settings, "ROW_INSERT_BATCH_SIZE", 4)

    sizes = []
    real = crud_rows.blank_row_mappings

    def _spy(table_id, start, size):
        sizes.append((start, size))
        return real(table_id, start, size)

    monkeypatch.setattr(crud_rows, "blank_row_mappings", _spy)

    r = client.post(f"/tables/{tid}/rows", json={"count": 10}, headers=auth_headers)
    assert r.status_code == 201
    assert sizes == [(0, 4), (4, 4), (8, 2)]
    assert db_session.query(func.count(TableRow.id)).filter(TableRow.table_id == tid).scalar() == 10


def test_failed_batch_removes_rows_already_written(db_session, client, auth_headers, make_table, monkeypatch):
    tid = make_table(seed_rows=2)["table"]["id"]
    user_id = client.get("/auth/me", headers=auth_headers).json()["id"]
    monkeypatch.setattr(settings, "ROW_INSERT_BATCH_SIZE", 3)

    calls = {"n": 0}
    real = crud_rows.blank_row_mappings

    def _flaky(table_id, start, size):
        calls["n"] += 1
        if calls["n"] == 3:
            raise RuntimeError("disk full")
        return real(table_id, start, size)

    monkeypatch.setattr(crud_rows, "blank_row_mappings", _flaky)

    with pytest.raises(RuntimeError):
        crud_rows.add_rows(db_session, user_id=user_id, table_id=tid, count=8)

    remaining = [i for (i,) in db_session.query(TableRow.row_index).filter(TableRow.table_id == tid)]
    assert sorted(remaining) == [0, 1]

    # The reserved range is not handed out again
    db_session.expire_all()
    assert db_session.get(DataTable, tid).next_row_index == 10


def test_add_rows_rejects_bad_count_directly(db_session, client, auth_headers, make_table):
    tid = make_table()["table"]["id"]
    user_id = client.get("/auth/me", headers=auth_headers).json()["id"]
    with pytest.raises(InvalidInputError):
        crud_rows.add_rows(db_session, user_id=user_id, table_id=tid, count=0)


# ---------------------------
# set_cell_value
# ---------------------------


@pytest.mark.parametrize(
    "col_type, raw, expected",
    [
        ("TEXT", "  hello  ", ("hello", None)),
        ("TEXT", "   ", (None, None)),
        ("NUMBER", " 42 ", (None, 42.0)),
        ("NUMBER", "-3.5", (None, -3.5)),
        ("NUMBER", "1e3", (None, 1000.0)),
        ("NUMBER", "", (None, None)),
    ],
)
def test_normalize_cell_input(col_type, raw, expected):
    assert crud_rows.normalize_cell_input(col_type, raw) == expected


@pytest.mark.parametrize("raw", ["abc", "1_000", "inf", "-Infinity", "nan", "1,5"])
def test_invalid_numbers_are_rejected(raw):
    with pytest.raises(InvalidInputError):
        crud_rows.normalize_cell_input("NUMBER", raw)


def test_unknown_column_type_is_rejected():
    with pytest.raises(InvalidInputError):
        crud_rows.normalize_cell_input("DATE", "2024-01-01")


def test_cell_write_round_trip(client, auth_headers, make_table, db_session):
    body = make_table(seed_rows=1)
    tid = body["table"]["id"]
    name_id, amount_id = body["columns"][0]["id"], body["columns"][2]["id"]
    row_id = client.get(f"/tables/{tid}/rows", headers=auth_headers).json()["rows"][0]["id"]

    r = client.put(f"/rows/{row_id}/cells/{name_id}", json={"value": " Widget "}, headers=auth_headers)
    assert r.status_code == 200, r.text
    assert r.json() == {"row_id": row_id, "column_id": name_id, "text_value": "Widget", "number_value": None}

    r = client.put(f"/rows/{row_id}/cells/{amount_id}", json={"value": "12.5"}, headers=auth_headers)
    assert r.json()["number_value"] == 12.5

    bad = client.put(f"/rows/{row_id}/cells/{amount_id}", json={"value": "twelve"}, headers=auth_headers)
    assert bad.status_code == 400
    assert bad.json()["detail"] == "Invalid number"

    # Overwrite, then clear: one cell per (row, column) throughout
    client.put(f"/rows/{row_id}/cells/{name_id}", json={"value": "Gadget"}, headers=auth_headers)
    client.put(f"/rows/{row_id}/cells/{amount_id}", json={"value": ""}, headers=auth_headers)
    assert db_session.query(Cell).filter(Cell.row_id == row_id).count() == 2

    row = client.get(f"/tables/{tid}/rows", headers=auth_headers).json()["rows"][0]
    assert row["cells"] == [
        {"column_id": name_id, "text_value": "Gadget", "number_value": None},
    ]


def test_cell_write_column_must_belong_to_rows_table(client, auth_headers, make_table):
    first = make_table(name="A", seed_rows=1)
    second = make_table(name="B", seed_rows=0)
    row_id = client.get(f"/tables/{first['table']['id']}/rows", headers=auth_headers).json()["rows"][0]["id"]

    r = client.put(
        f"/rows/{row_id}/cells/{second['columns'][0]['id']}", json={"value": "x"}, headers=auth_headers
    )
    assert r.status_code == 404
    assert r.json()["detail"] == "Column not found"
