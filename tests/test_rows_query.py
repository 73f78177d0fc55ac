# File: tests/test_rows_query.py | Version: 1.0 | Title: Row pages: unsorted and sorted keyset pagination
from __future__ import annotations

import base64
import json

import pytest

from app.crud import core_entities as crud_core
from app.crud import rows as crud_rows
from app.crud.filtering import column_types, compile_view
from app.crud.pagination import clamp_limit, decode_cursor, fetch_page
from app.models import TableColumn
from app.schemas.core_entities import BaseCreate, TableCreate
from app.schemas.view import TextFilter, ViewConfig, ViewSort


def _token(payload: dict) -> str:
    raw = json.dumps(payload).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _cell(row: dict, column_id: str):
    for c in row["cells"]:
        if c["column_id"] == column_id:
            return c["text_value"] if c["text_value"] is not None else c["number_value"]
    return None


def _all_pages(client, headers, table_id, **params):
    seen, cursor, pages = [], None, 0
    while True:
        query = dict(params)
        if cursor:
            query["cursor"] = cursor
        body = client.get(f"/tables/{table_id}/rows", params=query, headers=headers).json()
        seen.extend(body["rows"])
        pages += 1
        cursor = body["next_cursor"]
        if not cursor:
            return seen, pages
        assert pages < 100


# ---------------------------
# Scenario: Alice / Bob / Carol
# ---------------------------


@pytest.fixture()
def abc(db_session, owner):
    ws_id = owner.workspaces[0].id
    base = crud_core.create_base(db_session, user_id=owner.id, workspace_id=ws_id, data=BaseCreate(name="B"))
    created = crud_core.create_table(
        db_session, user_id=owner.id, base_id=base.id, data=TableCreate(name="T", seed_rows=3)
    )
    table_id = created["table"].id
    cols = {c.name: c.id for c in created["columns"]}
    rows = crud_rows.query_rows(db_session, user_id=owner.id, table_id=table_id).rows
    for row, (name, amount) in zip(rows, [("Alice", "10"), ("Bob", ""), ("Carol", "5")]):
        crud_rows.set_cell_value(db_session, user_id=owner.id, row_id=row["id"], column_id=cols["Name"], value=name)
        crud_rows.set_cell_value(db_session, user_id=owner.id, row_id=row["id"], column_id=cols["Amount"], value=amount)
    return {"table_id": table_id, "cols": cols}


def _compiled(db, table_id, config):
    columns = column_types(db.query(TableColumn).filter(TableColumn.table_id == table_id))
    return compile_view(columns, config), columns


def test_sorted_pages_put_nulls_last(db_session, abc):
    cols = abc["cols"]
    compiled, columns = _compiled(
        db_session, abc["table_id"], ViewConfig(sort=ViewSort(column_id=cols["Amount"], direction="asc"))
    )

    first = fetch_page(db_session, abc["table_id"], compiled, columns, None, 2)
    assert [_cell(r, cols["Name"]) for r in first.rows] == ["Carol", "Alice"]
    assert first.next_cursor is not None

    second = fetch_page(db_session, abc["table_id"], compiled, columns, first.next_cursor, 2)
    assert [_cell(r, cols["Name"]) for r in second.rows] == ["Bob"]
    assert _cell(second.rows[0], cols["Amount"]) is None
    assert second.next_cursor is None


def test_descending_sort_still_puts_nulls_last(db_session, abc):
    cols = abc["cols"]
    compiled, columns = _compiled(
        db_session, abc["table_id"], ViewConfig(sort=ViewSort(column_id=cols["Amount"], direction="desc"))
    )
    first = fetch_page(db_session, abc["table_id"], compiled, columns, None, 2)
    second = fetch_page(db_session, abc["table_id"], compiled, columns, first.next_cursor, 2)
    names = [_cell(r, cols["Name"]) for r in first.rows + second.rows]
    assert names == ["Alice", "Carol", "Bob"]


def test_contains_filter_scenario(db_session, abc):
    cols = abc["cols"]
    compiled, columns = _compiled(
        db_session,
        abc["table_id"],
        ViewConfig(filters=[TextFilter(column_id=cols["Name"], op="contains", value="a")]),
    )
    page = fetch_page(db_session, abc["table_id"], compiled, columns, None, 10)
    assert [_cell(r, cols["Name"]) for r in page.rows] == ["Alice", "Carol"]
    assert page.next_cursor is None


def test_exact_multiple_of_limit_ends_with_empty_page(db_session, abc):
    compiled, columns = _compiled(db_session, abc["table_id"], ViewConfig())
    first = fetch_page(db_session, abc["table_id"], compiled, columns, None, 3)
    assert len(first.rows) == 3 and first.next_cursor
    second = fetch_page(db_session, abc["table_id"], compiled, columns, first.next_cursor, 3)
    assert second.rows == [] and second.next_cursor is None


# ---------------------------
# Completeness over many rows
# ---------------------------


TEXTS = ["kiwi", "apple", None, "fig", "apple", "banana", None, "cherry", "date", "fig"]
NUMBERS = [3, None, 1.5, 3, -2, None, 0, 7.25, 3, 1.5, 12]


@pytest.fixture()
def big(client, auth_headers, make_table):
    body = make_table(seed_rows=37)
    table_id = body["table"]["id"]
    cols = {c["name"]: c["id"] for c in body["columns"]}
    rows, _ = _all_pages(client, auth_headers, table_id, limit=500)
    assert len(rows) == 37

    expected = {}
    for i, row in enumerate(rows):
        text = TEXTS[i % len(TEXTS)]
        number = NUMBERS[i % len(NUMBERS)]
        if text is not None:
            client.put(f"/rows/{row['id']}/cells/{cols['Name']}", json={"value": text}, headers=auth_headers)
        if number is not None:
            client.put(
                f"/rows/{row['id']}/cells/{cols['Amount']}", json={"value": str(number)}, headers=auth_headers
            )
        expected[row["id"]] = (row["row_index"], text, None if number is None else float(number))

    views = client.get(f"/tables/{table_id}/views", headers=auth_headers).json()
    return {"table_id": table_id, "cols": cols, "view_id": views[0]["id"], "expected": expected}


def _python_order(expected, slot, descending):
    present = [(v[slot], v[0], rid) for rid, v in expected.items() if v[slot] is not None]
    missing = [(v[0], rid) for rid, v in expected.items() if v[slot] is None]
    present.sort(key=lambda t: t[1])
    present.sort(key=lambda t: t[0], reverse=descending)
    return [rid for _, _, rid in present] + [rid for _, rid in sorted(missing)]


def test_unsorted_pages_cover_every_row_once(client, auth_headers, big):
    rows, pages = _all_pages(client, auth_headers, big["table_id"], view_id=big["view_id"], limit=10)
    indexes = [r["row_index"] for r in rows]
    assert indexes == sorted(indexes) == list(range(37))
    assert pages == 4


@pytest.mark.parametrize("column, slot", [("Name", 1), ("Amount", 2)])
@pytest.mark.parametrize("direction", ["asc", "desc"])
def test_sorted_pages_match_full_sort(client, auth_headers, big, column, slot, direction):
    r = client.patch(
        f"/views/{big['view_id']}/config",
        json={"sort": {"column_id": big["cols"][column], "direction": direction}},
        headers=auth_headers,
    )
    assert r.status_code == 200, r.text

    rows, _ = _all_pages(client, auth_headers, big["table_id"], view_id=big["view_id"], limit=10)
    got = [row["id"] for row in rows]
    assert len(got) == len(set(got)) == 37
    assert got == _python_order(big["expected"], slot, direction == "desc")


def test_filtered_sorted_pages(client, auth_headers, big):
    cols = big["cols"]
    client.patch(
        f"/views/{big['view_id']}/config",
        json={
            "filters": [{"kind": "number", "column_id": cols["Amount"], "op": "gt", "value": 0}],
            "sort": {"column_id": cols["Amount"], "direction": "desc"},
        },
        headers=auth_headers,
    )
    rows, _ = _all_pages(client, auth_headers, big["table_id"], view_id=big["view_id"], limit=10)
    values = [_cell(r, cols["Amount"]) for r in rows]
    expected = sorted((v[2] for v in big["expected"].values() if v[2] is not None and v[2] > 0), reverse=True)
    assert values == expected


def test_search_param_overrides_saved_q(client, auth_headers, big):
    client.patch(f"/views/{big['view_id']}/config", json={"q": "kiwi"}, headers=auth_headers)
    saved, _ = _all_pages(client, auth_headers, big["table_id"], view_id=big["view_id"], limit=50)
    assert saved and all(_cell(r, big["cols"]["Name"]) == "kiwi" for r in saved)

    override, _ = _all_pages(client, auth_headers, big["table_id"], view_id=big["view_id"], limit=50, q="fig")
    assert override and all(_cell(r, big["cols"]["Name"]) == "fig" for r in override)

    cleared, _ = _all_pages(client, auth_headers, big["table_id"], view_id=big["view_id"], limit=50, q="")
    assert len(cleared) == 37


# ---------------------------
# Cursors
# ---------------------------


def test_cursor_from_other_mode_restarts(client, auth_headers, big):
    tid, vid = big["table_id"], big["view_id"]
    first = client.get(f"/tables/{tid}/rows", params={"view_id": vid, "limit": 10}, headers=auth_headers).json()
    unsorted_cursor = first["next_cursor"]

    client.patch(
        f"/views/{vid}/config",
        json={"sort": {"column_id": big["cols"]["Amount"], "direction": "asc"}},
        headers=auth_headers,
    )
    fresh = client.get(f"/tables/{tid}/rows", params={"view_id": vid, "limit": 10}, headers=auth_headers).json()
    replayed = client.get(
        f"/tables/{tid}/rows",
        params={"view_id": vid, "limit": 10, "cursor": unsorted_cursor},
        headers=auth_headers,
    ).json()
    assert [r["id"] for r in replayed["rows"]] == [r["id"] for r in fresh["rows"]]

    # And the other way: a sorted cursor replayed after the sort is removed
    sorted_cursor = fresh["next_cursor"]
    client.patch(f"/views/{vid}/config", json={"sort": None}, headers=auth_headers)
    back = client.get(
        f"/tables/{tid}/rows",
        params={"view_id": vid, "limit": 10, "cursor": sorted_cursor},
        headers=auth_headers,
    ).json()
    assert [r["row_index"] for r in back["rows"]] == list(range(10))


def test_garbage_cursor_restarts(client, auth_headers, big):
    r = client.get(
        f"/tables/{big['table_id']}/rows",
        params={"limit": 10, "cursor": "%%%not-base64"},
        headers=auth_headers,
    )
    assert r.status_code == 200
    assert [row["row_index"] for row in r.json()["rows"]] == list(range(10))


def test_decode_cursor_validation():
    from app.crud.filtering import ResolvedSort
    from app.schemas.grid import ColumnType
    from app.schemas.view import SortDirection

    assert decode_cursor(None, None) is None
    assert decode_cursor(_token({"m": "rows", "i": 5}), None).start == 5
    assert decode_cursor(_token({"m": "rows", "i": -1}), None) is None
    assert decode_cursor(_token({"m": "rows", "i": True}), None) is None
    assert decode_cursor(_token([1, 2]), None) is None

    sort = ResolvedSort(column_id="c", column_type=ColumnType.NUMBER, direction=SortDirection.asc)
    ok = {"m": "sorted", "c": "c", "t": "NUMBER", "d": "asc", "r": 0, "v": 4, "i": 2}
    cur = decode_cursor(_token(ok), sort)
    assert cur.value == 4.0 and cur.row_index == 2 and cur.null_rank == 0

    assert decode_cursor(_token({**ok, "d": "desc"}), sort) is None
    assert decode_cursor(_token({**ok, "c": "other"}), sort) is None
    assert decode_cursor(_token({**ok, "v": "four"}), sort) is None
    assert decode_cursor(_token({**ok, "r": 1, "v": None}), sort).null_rank == 1
    assert decode_cursor(_token({"m": "rows", "i": 3}), sort) is None

    # Out-of-range and non-finite values restart instead of reaching the query
    assert decode_cursor(_token({"m": "rows", "i": 10**30}), None) is None
    assert decode_cursor(_token({"m": "rows", "i": 2**63 - 1}), None).start == 2**63 - 1
    assert decode_cursor(_token({**ok, "i": 10**30}), sort) is None
    assert decode_cursor(_token({**ok, "r": 10**30}), sort) is None
    assert decode_cursor(_token({**ok, "v": 10**400}), sort) is None
    assert decode_cursor(_token({**ok, "v": float("inf")}), sort) is None
    assert decode_cursor(_token({**ok, "v": float("nan")}), sort) is None
    assert decode_cursor(_token({**ok, "r": 1, "v": None, "i": -3}), sort) is None


def test_out_of_range_cursor_restarts(client, auth_headers, big):
    table_id = big["table_id"]
    first = client.get(f"/tables/{table_id}/rows", params={"limit": 10}, headers=auth_headers).json()

    r = client.get(
        f"/tables/{table_id}/rows",
        params={"limit": 10, "cursor": _token({"m": "rows", "i": 10**30})},
        headers=auth_headers,
    )
    assert r.status_code == 200
    assert [row["id"] for row in r.json()["rows"]] == [row["id"] for row in first["rows"]]

    vid = big["view_id"]
    client.patch(f"/views/{vid}/config", json={"sort": {"column_id": big["cols"]["Amount"]}}, headers=auth_headers)
    sorted_first = client.get(
        f"/tables/{table_id}/rows", params={"view_id": vid, "limit": 10}, headers=auth_headers
    ).json()
    huge = {"m": "sorted", "c": big["cols"]["Amount"], "t": "NUMBER", "d": "asc", "r": 0, "v": 10**400, "i": 0}
    r = client.get(
        f"/tables/{table_id}/rows",
        params={"view_id": vid, "limit": 10, "cursor": _token(huge)},
        headers=auth_headers,
    )
    assert r.status_code == 200
    assert [row["id"] for row in r.json()["rows"]] == [row["id"] for row in sorted_first["rows"]]


def test_limit_is_clamped(client, auth_headers, big):
    assert clamp_limit(None) == 50
    assert clamp_limit(1) == 10
    assert clamp_limit(10_000) == 500

    r = client.get(f"/tables/{big['table_id']}/rows", params={"limit": 1}, headers=auth_headers)
    assert len(r.json()["rows"]) == 10


# ---------------------------
# Hydration and schema drift
# ---------------------------


def test_view_from_another_table_is_404(client, auth_headers, big, make_table):
    other = make_table(name="Other")
    r = client.get(
        f"/tables/{other['table']['id']}/rows", params={"view_id": big["view_id"]}, headers=auth_headers
    )
    assert r.status_code == 404


def test_deleted_and_retyped_columns_do_not_break_views(client, auth_headers, big, db_session):
    cols = big["cols"]
    client.patch(
        f"/views/{big['view_id']}/config",
        json={
            "filters": [{"kind": "text", "column_id": cols["Notes"], "op": "is_not_empty"}],
            "sort": {"column_id": cols["Name"], "direction": "asc"},
        },
        headers=auth_headers,
    )

    # Retype Name to NUMBER underneath the view: its text values now read as empty
    col = db_session.get(TableColumn, cols["Name"])
    col.type = "NUMBER"
    db_session.commit()
    assert client.delete(f"/columns/{cols['Notes']}", headers=auth_headers).status_code == 204

    rows, _ = _all_pages(client, auth_headers, big["table_id"], view_id=big["view_id"], limit=10)
    assert len(rows) == 37
    # Every Name is a stray text value for a NUMBER column, so every row is in the nulls group
    assert [r["row_index"] for r in rows] == list(range(37))
    assert all(_cell(r, cols["Name"]) is None for r in rows)
