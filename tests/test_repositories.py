"""
Tests for the Mongo repositories.

The Motor collection is replaced with mocks so the queries, the
compare-and-set filter and the error mapping can be checked without a
server.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo import ReturnDocument
from pymongo.errors import ConnectionFailure, DuplicateKeyError, ServerSelectionTimeoutError

from app.conversations.keys import canonical_key
from app.conversations.repository import MongoConversationRepository
from app.conversations.service import build_conversation
from app.core.database import Database
from app.core.exceptions import ConversationUnavailableException, JobStoreUnavailableException
from app.jobs.models import ProgressionEntry
from app.jobs.repository import MongoJobRepository

from tests.fakes import FIXED_NOW


KEY = canonical_key("J1", ["C1", "M1"])


@pytest.fixture
def collection(monkeypatch):
    collection = MagicMock()
    db = MagicMock()
    db.__getitem__.return_value = collection
    monkeypatch.setattr(Database, "db", db)
    return collection


@pytest.fixture
def draft(make_job):
    return build_conversation(
        key=KEY,
        participant_ids=["C1", "M1"],
        participant_names=["Alice", "Bob"],
        job_id="J1",
        job=make_job(),
        vehicle_description="",
        now=FIXED_NOW,
    )


class TestMongoJobRepository:
    @pytest.mark.asyncio
    async def test_get_reads_by_job_id(self, collection, make_job):
        collection.find_one = AsyncMock(return_value=make_job(status="bidding").to_document())

        job = await MongoJobRepository().get("J1")

        assert job.id == "J1"
        assert job.status == "bidding"
        collection.find_one.assert_awaited_once_with({"job_id": "J1"})

    @pytest.mark.asyncio
    async def test_unknown_job(self, collection):
        collection.find_one = AsyncMock(return_value=None)
        assert await MongoJobRepository().get("J404") is None

    @pytest.mark.asyncio
    async def test_update_filters_on_expected_status(self, collection, make_job):
        updated = make_job(status="accepted", selected_mechanic_id="M1").to_document()
        collection.find_one_and_update = AsyncMock(return_value=updated)
        entry = ProgressionEntry(status="accepted", message="Mechanic selected", actor="C1", timestamp=FIXED_NOW)
        changes = {"status": "accepted", "selected_mechanic_id": "M1", "updated_at": FIXED_NOW}

        job = await MongoJobRepository().update_status("J1", "bidding", changes, entry)

        assert job.selected_mechanic_id == "M1"
        query, update = collection.find_one_and_update.await_args.args
        assert query == {"job_id": "J1", "status": "bidding"}
        assert update == {"$set": changes, "$push": {"progression": entry.model_dump()}}
        assert collection.find_one_and_update.await_args.kwargs["return_document"] == ReturnDocument.AFTER

    @pytest.mark.asyncio
    async def test_update_misses_when_status_moved(self, collection):
        collection.find_one_and_update = AsyncMock(return_value=None)
        entry = ProgressionEntry(status="accepted", message="Mechanic selected", timestamp=FIXED_NOW)

        result = await MongoJobRepository().update_status("J1", "bidding", {"status": "accepted"}, entry)

        assert result is None

    @pytest.mark.asyncio
    async def test_listing_keeps_insertion_order(self, collection, make_job):
        cursor = collection.find.return_value.sort.return_value
        cursor.to_list = AsyncMock(return_value=[make_job(id="J1").to_document(), make_job(id="J2").to_document()])

        jobs = await MongoJobRepository().list_by_customer("C1")

        assert [j.id for j in jobs] == ["J1", "J2"]
        collection.find.assert_called_once_with({"customer_id": "C1"})
        collection.find.return_value.sort.assert_called_once_with("_id", 1)

    @pytest.mark.asyncio
    async def test_connection_failure_is_unavailable(self, collection):
        collection.find_one = AsyncMock(side_effect=ServerSelectionTimeoutError("No servers available"))

        with pytest.raises(JobStoreUnavailableException) as exc_info:
            await MongoJobRepository().get("J1")
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_not_connected(self, monkeypatch):
        monkeypatch.setattr(Database, "db", None)
        with pytest.raises(JobStoreUnavailableException):
            await MongoJobRepository().list_by_mechanic("M1")


class TestMongoConversationRepository:
    @pytest.mark.asyncio
    async def test_create_if_absent_upserts_on_key(self, collection, draft):
        collection.update_one = AsyncMock(return_value=MagicMock(upserted_id="65f0c0ffee0000000000abcd"))
        collection.find_one = AsyncMock(return_value=draft.to_document())

        stored, created = await MongoConversationRepository().create_if_absent(KEY, draft)

        assert created
        assert stored.id == draft.id
        collection.update_one.assert_awaited_once_with(
            {"key": KEY}, {"$setOnInsert": draft.to_document()}, upsert=True
        )

    @pytest.mark.asyncio
    async def test_existing_document_wins(self, collection, draft):
        existing = draft.model_copy(update={"participant_names": {"C1": "Alice", "M1": "Robert"}})
        collection.update_one = AsyncMock(return_value=MagicMock(upserted_id=None))
        collection.find_one = AsyncMock(return_value=existing.to_document())

        stored, created = await MongoConversationRepository().create_if_absent(KEY, draft)

        assert not created
        assert stored.participant_names["M1"] == "Robert"

    @pytest.mark.asyncio
    async def test_concurrent_creates_converge(self, collection, draft):
        collection.update_one = AsyncMock(side_effect=[
            MagicMock(upserted_id="65f0c0ffee0000000000abcd"),
            DuplicateKeyError("E11000 duplicate key error collection: conversations index: key_1"),
        ])
        collection.find_one = AsyncMock(return_value=draft.to_document())
        repo = MongoConversationRepository()

        results = await asyncio.gather(repo.create_if_absent(KEY, draft), repo.create_if_absent(KEY, draft))

        assert sorted(created for _, created in results) == [False, True]
        assert {stored.id for stored, _ in results} == {draft.id}

    @pytest.mark.asyncio
    async def test_document_missing_after_upsert(self, collection, draft):
        collection.update_one = AsyncMock(return_value=MagicMock(upserted_id=None))
        collection.find_one = AsyncMock(return_value=None)

        with pytest.raises(ConversationUnavailableException):
            await MongoConversationRepository().create_if_absent(KEY, draft)

    @pytest.mark.asyncio
    async def test_connection_failure_is_unavailable(self, collection):
        collection.find_one = AsyncMock(side_effect=ConnectionFailure("connection closed"))
        repo = MongoConversationRepository()

        with pytest.raises(ConversationUnavailableException):
            await repo.find_by_key(KEY)
        with pytest.raises(ConversationUnavailableException):
            await repo.get("conv_1")

    @pytest.mark.asyncio
    async def test_set_flag_on_unknown_conversation(self, collection):
        collection.find_one_and_update = AsyncMock(return_value=None)

        result = await MongoConversationRepository().set_flag("conv_1", "is_pinned", True, FIXED_NOW)

        assert result is None
        query, update = collection.find_one_and_update.await_args.args
        assert query == {"conversation_id": "conv_1"}
        assert update == {"$set": {"is_pinned": True, "updated_at": FIXED_NOW}}

    @pytest.mark.asyncio
    async def test_not_connected(self, monkeypatch):
        monkeypatch.setattr(Database, "db", None)
        with pytest.raises(ConversationUnavailableException):
            await MongoConversationRepository().list_for_participant("C1")
