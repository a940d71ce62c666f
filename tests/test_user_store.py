"""UserStore tests, run against both the in-memory and the SQL store."""
import pytest

from playerauth.errors import DuplicateUserError
from playerauth.schemas import UserProfile, UserRecord


def make_record(email="e@x.com", identity_hash="h1", progress_state=None):
    return UserRecord(
        identity_hash=identity_hash,
        profile=UserProfile(email=email, primary=True, verified=True),
        progress_state=progress_state if progress_state is not None else {"level": 3},
    )


@pytest.mark.asyncio
async def test_find_by_email_on_empty_store(store):
    assert await store.find_by_email("e@x.com") is None
    assert await store.find_by_identity_hash("h1") is None
    assert await store.list_all() == []


@pytest.mark.asyncio
async def test_insert_then_find(store):
    record = make_record()
    await store.insert(record)

    assert await store.find_by_email("e@x.com") == record
    assert await store.find_by_identity_hash("h1") == record
    assert await store.list_all() == [record]


@pytest.mark.asyncio
async def test_insert_duplicate_email_fails_and_keeps_one(store):
    await store.insert(make_record(identity_hash="h1"))

    with pytest.raises(DuplicateUserError) as exc:
        await store.insert(make_record(identity_hash="h2", progress_state={}))
    assert exc.value.email == "e@x.com"

    records = await store.list_all()
    assert len(records) == 1
    assert records[0].identity_hash == "h1"


@pytest.mark.asyncio
async def test_delete_returns_removed_count(store):
    await store.insert(make_record())

    assert await store.delete("e@x.com") == 1
    assert await store.find_by_email("e@x.com") is None
    assert await store.delete("e@x.com") == 0


@pytest.mark.asyncio
async def test_delete_keeps_other_records(store):
    await store.insert(make_record(email="a@x.com", identity_hash="ha"))
    await store.insert(make_record(email="b@x.com", identity_hash="hb"))
    await store.insert(make_record(email="c@x.com", identity_hash="hc"))

    await store.delete("b@x.com")

    assert (await store.find_by_email("a@x.com")).identity_hash == "ha"
    assert (await store.find_by_email("c@x.com")).identity_hash == "hc"
    assert len(await store.list_all()) == 2


@pytest.mark.asyncio
async def test_replace_when_present(store):
    await store.insert(make_record(identity_hash="old", progress_state={"level": 1}))

    await store.replace(make_record(identity_hash="new", progress_state={"level": 2}))

    stored = await store.find_by_email("e@x.com")
    assert stored.identity_hash == "new"
    assert stored.progress_state == {"level": 2}
    assert await store.find_by_identity_hash("old") is None
    assert len(await store.list_all()) == 1


@pytest.mark.asyncio
async def test_replace_when_absent_inserts(store):
    await store.replace(make_record(identity_hash="fresh"))

    stored = await store.find_by_email("e@x.com")
    assert stored.identity_hash == "fresh"
    assert len(await store.list_all()) == 1


@pytest.mark.asyncio
async def test_progress_state_round_trips_verbatim(store):
    state = {"scores": [10, 20, {"boss": True}], "name": "Ünïcode", "nested": {"a": None}}
    await store.insert(make_record(progress_state=state))

    assert (await store.find_by_email("e@x.com")).progress_state == state


@pytest.mark.asyncio
async def test_memory_store_returns_copies(memory_store):
    await memory_store.insert(make_record(progress_state={"items": ["sword"]}))

    found = await memory_store.find_by_email("e@x.com")
    found.progress_state["items"].append("shield")

    again = await memory_store.find_by_email("e@x.com")
    assert again.progress_state == {"items": ["sword"]}


@pytest.mark.asyncio
async def test_sql_unique_constraint_maps_to_duplicate(sql_store):
    await sql_store.insert(make_record(identity_hash="h1"))

    # Skips the existence check, as a concurrent writer racing the check would
    with pytest.raises(DuplicateUserError):
        await sql_store._insert(make_record(identity_hash="h2"))

    assert (await sql_store.find_by_email("e@x.com")).identity_hash == "h1"


@pytest.mark.asyncio
async def test_padded_email_is_stored_trimmed(store):
    await store.insert(make_record(email="  e@x.com\n"))

    assert (await store.find_by_email("e@x.com")).profile.email == "e@x.com"
    with pytest.raises(DuplicateUserError):
        await store.insert(make_record(email="e@x.com", identity_hash="h2"))
