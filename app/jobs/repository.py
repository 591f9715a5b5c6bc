"""Job persistence (Mongo adapter behind a small protocol)."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

from pymongo import ReturnDocument
from pymongo.errors import ConnectionFailure

from app.core.database import Database
from app.core.exceptions import JobStoreUnavailableException
from app.jobs.models import Job, ProgressionEntry

logger = logging.getLogger(__name__)


class JobRepository(Protocol):
    async def insert(self, job: Job) -> None:
        ...

    async def get(self, job_id: str) -> Optional[Job]:
        ...

    async def list_by_customer(self, customer_id: str) -> List[Job]:
        ...

    async def list_by_mechanic(self, mechanic_id: str) -> List[Job]:
        ...

    async def update_status(
        self,
        job_id: str,
        expected_status: str,
        changes: Dict[str, Any],
        entry: ProgressionEntry,
    ) -> Optional[Job]:
        """Apply `changes` only if the job is still in `expected_status`; None otherwise."""
        ...


class MongoJobRepository:
    """
    Jobs stored in the `jobs` collection, keyed by `job_id`.

    Connection failures surface as JobStoreUnavailableException.
    """

    @staticmethod
    def _collection():
        if Database.db is None:
            raise JobStoreUnavailableException("Job store is not connected")
        return Database.get_collection("jobs")

    async def insert(self, job: Job) -> None:
        try:
            await self._collection().insert_one(job.to_document())
        except ConnectionFailure as e:
            logger.error(f"Job insert failed for {job.id}: {e}")
            raise JobStoreUnavailableException() from e

    async def get(self, job_id: str) -> Optional[Job]:
        try:
            doc = await self._collection().find_one({"job_id": job_id})
        except ConnectionFailure as e:
            logger.error(f"Job lookup failed for {job_id}: {e}")
            raise JobStoreUnavailableException() from e
        return Job.from_document(doc) if doc else None

    async def _list(self, query: Dict[str, Any]) -> List[Job]:
        # _id is an ObjectId, so ascending _id is insertion order.
        try:
            cursor = self._collection().find(query).sort("_id", 1)
            docs = await cursor.to_list(length=None)
        except ConnectionFailure as e:
            logger.error(f"Job listing failed for {query}: {e}")
            raise JobStoreUnavailableException() from e
        return [Job.from_document(doc) for doc in docs]

    async def list_by_customer(self, customer_id: str) -> List[Job]:
        return await self._list({"customer_id": customer_id})

    async def list_by_mechanic(self, mechanic_id: str) -> List[Job]:
        return await self._list({"selected_mechanic_id": mechanic_id})

    async def update_status(
        self,
        job_id: str,
        expected_status: str,
        changes: Dict[str, Any],
        entry: ProgressionEntry,
    ) -> Optional[Job]:
        try:
            doc = await self._collection().find_one_and_update(
                {"job_id": job_id, "status": expected_status},
                {
                    "$set": changes,
                    "$push": {"progression": entry.model_dump()},
                },
                return_document=ReturnDocument.AFTER,
            )
        except ConnectionFailure as e:
            logger.error(f"Job status update failed for {job_id}: {e}")
            raise JobStoreUnavailableException() from e
        return Job.from_document(doc) if doc else None
