"""
Tests for the chainable query builder over the table store.
"""
from datetime import date

import pytest

from lexpix.exceptions import QueryError
from lexpix.store.kv import MemoryKeyValueStore, TableStore
from lexpix.store.query import LocalQueryClient


@pytest.fixture
def db():
    return LocalQueryClient(TableStore(MemoryKeyValueStore()))


async def _seed(db, rows):
    result = await db.table("items").insert(rows).execute()
    return result.data


async def test_insert_assigns_id_and_created_at(db):
    rows = await _seed(db, {"title": "Sunset"})

    assert len(rows) == 1
    assert rows[0]["id"]
    assert rows[0]["created_at"]
    assert rows[0]["title"] == "Sunset"


async def test_insert_keeps_custom_primary_key(db):
    result = await db.table("invite_tokens").insert({"token": "abc", "used": False}, primary_key="token")
    assert result.data[0]["token"] == "abc"
    assert "id" not in result.data[0]


async def test_select_filters_and_projects(db):
    await _seed(db, [
        {"title": "a", "published": True},
        {"title": "b", "published": False},
        {"title": "c", "published": True},
    ])

    result = await db.table("items").select("title").eq("published", True).order("title").execute()

    assert result.data == [{"title": "a"}, {"title": "c"}]
    assert result.count == 2


async def test_filter_on_date_values(db):
    await _seed(db, [{"title": "may", "date": date(2024, 5, 1)}, {"title": "june", "date": date(2024, 6, 1)}])

    result = await db.table("items").select("*").eq("date", date(2024, 5, 1)).execute()

    assert [r["title"] for r in result.data] == ["may"]
    assert result.data[0]["date"] == "2024-05-01"


async def test_descending_order_mirrors_ascending(db):
    """With ties and missing values, descending is the exact reverse of ascending."""
    await _seed(db, [
        {"title": "first two", "sort_order": 2},
        {"title": "first one", "sort_order": 1},
        {"title": "second two", "sort_order": 2},
        {"title": "no order", "sort_order": None},
        {"title": "second one", "sort_order": 1},
    ])

    asc = await db.table("items").select("title").order("sort_order").execute()
    desc = await db.table("items").select("title").order("sort_order", desc=True).execute()

    asc_titles = [r["title"] for r in asc.data]
    assert asc_titles == ["no order", "first one", "second one", "first two", "second two"]
    assert [r["title"] for r in desc.data] == list(reversed(asc_titles))


async def test_order_on_mixed_types_raises_query_error(db):
    await _seed(db, [{"id": "a", "rank": 1}, {"id": "b", "rank": 2}])
    await db.table("items").upsert({"id": "b", "rank": "second"}).execute()

    with pytest.raises(QueryError, match="'rank'"):
        await db.table("items").select("*").order("rank").execute()


async def test_range_and_limit(db):
    await _seed(db, [{"title": str(i), "n": i} for i in range(5)])

    page = await db.table("items").select("n").order("n").range(1, 2).execute()
    assert [r["n"] for r in page.data] == [1, 2]

    first = await db.table("items").select("n").order("n", desc=True).limit(2).execute()
    assert [r["n"] for r in first.data] == [4, 3]


def test_invalid_range_and_limit(db):
    with pytest.raises(QueryError):
        db.table("items").select().range(3, 1)
    with pytest.raises(QueryError):
        db.table("items").select().limit(-1)


async def test_single_and_maybe_single(db):
    await _seed(db, [{"title": "a"}, {"title": "b"}])

    found = await db.table("items").select("*").eq("title", "a").single().execute()
    assert found.data["title"] == "a"

    with pytest.raises(QueryError):
        await db.table("items").select("*").eq("title", "zzz").single().execute()
    with pytest.raises(QueryError):
        await db.table("items").select("*").maybe_single().execute()

    missing = await db.table("items").select("*").eq("title", "zzz").maybe_single().execute()
    assert missing.data is None


async def test_builder_can_be_awaited_directly(db):
    await _seed(db, {"title": "a"})
    result = await db.table("items").select("*")
    assert len(result.data) == 1


async def test_update_changes_matching_rows_only(db):
    rows = await _seed(db, [{"title": "a", "n": 1}, {"title": "b", "n": 2}])

    result = await db.table("items").update({"n": 10}).eq("id", rows[0]["id"]).execute()

    assert result.data[0]["n"] == 10
    everything = await db.table("items").select("title, n").order("title").execute()
    assert everything.data == [{"title": "a", "n": 10}, {"title": "b", "n": 2}]


async def test_update_and_delete_require_a_filter(db):
    await _seed(db, {"title": "a"})
    with pytest.raises(QueryError):
        await db.table("items").update({"title": "b"}).execute()
    with pytest.raises(QueryError):
        await db.table("items").delete().execute()


async def test_delete_returns_removed_rows(db):
    await _seed(db, [{"title": "a", "group": 1}, {"title": "b", "group": 1}, {"title": "c", "group": 2}])

    result = await db.table("items").delete().eq("group", 1).execute()

    assert sorted(r["title"] for r in result.data) == ["a", "b"]
    left = await db.table("items").select("title").execute()
    assert left.data == [{"title": "c"}]


async def test_upsert_merges_existing_and_inserts_new(db):
    rows = await _seed(db, {"title": "a", "n": 1})

    await db.table("items").upsert([{"id": rows[0]["id"], "n": 5}, {"title": "b", "n": 2}]).execute()

    result = await db.table("items").select("title, n").order("title").execute()
    assert result.data == [{"title": "a", "n": 5}, {"title": "b", "n": 2}]


async def test_from_alias_and_rpc(db):
    await _seed(db, {"title": "a"})
    result = await db.from_("items").select("*").execute()
    assert len(result.data) == 1

    rpc = await db.rpc("increment_counter", {"name": "photos"})
    assert rpc.data is None
