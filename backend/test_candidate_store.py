import pytest
from sqlalchemy import text

from candidate_store import CandidateStore, candidate_to_dict
from errors import StoreError


def _fields(email="ada@example.com", name="Ada"):
    return {"name": name, "email": email, "phone": "555-0100"}


@pytest.mark.asyncio
async def test_create_applies_defaults(session_factory):
    async with session_factory() as session:
        store = CandidateStore(session)
        candidate = await store.create(**_fields())
        data = candidate_to_dict(candidate)
    assert data["id"] is not None
    assert data["status"] == "not-started"
    assert data["score"] == 0
    assert data["answers"] == []
    assert data["summary"] == ""
    assert data["created_at"] is not None


@pytest.mark.asyncio
async def test_duplicate_email_raises_store_error(session_factory):
    async with session_factory() as session:
        store = CandidateStore(session)
        await store.create(**_fields())
        with pytest.raises(StoreError):
            await store.create(**_fields(name="Ada Again"))
        # session is usable again after the rollback
        assert len(await store.find()) == 1


@pytest.mark.asyncio
async def test_find_filters_by_email_and_orders_newest_first(session_factory):
    async with session_factory() as session:
        store = CandidateStore(session)
        first = await store.create(**_fields("a@x.com"))
        second = await store.create(**_fields("b@x.com"))
        assert [c.id for c in await store.find()] == [second.id, first.id]
        assert [c.email for c in await store.find(email="a@x.com")] == ["a@x.com"]
        assert await store.find(email="nobody@x.com") == []


@pytest.mark.asyncio
async def test_update_and_delete(session_factory):
    async with session_factory() as session:
        store = CandidateStore(session)
        candidate = await store.create(**_fields())
        answers = [{"question": "Q", "answer": "A", "score": 7, "feedback": "ok"}]
        updated = await store.update(candidate.id, {"status": "completed", "answers": answers})
        assert updated.status == "completed"
        assert updated.answers == answers
        assert updated.name == "Ada"

        assert await store.update(9999, {"status": "completed"}) is None
        assert await store.delete(candidate.id) is True
        assert await store.delete(candidate.id) is False
        assert await store.get(candidate.id) is None


@pytest.mark.asyncio
async def test_find_duplicates_on_legacy_table(session_factory):
    async with session_factory() as session:
        # tables created before the unique index existed can hold duplicates
        await session.execute(text("DROP INDEX ix_candidates_email"))
        await session.commit()

        store = CandidateStore(session)
        for email in ["a@x.com", "b@x.com", "a@x.com", "c@x.com", "a@x.com", "c@x.com"]:
            await store.create(**_fields(email))

        duplicates = await store.find_duplicates()
    assert sorted(c.email for c in duplicates) == ["a@x.com"] * 3 + ["c@x.com"] * 2
