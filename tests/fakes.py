"""In-memory repository doubles shared by the test suite."""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from app.conversations.models import Conversation
from app.core.exceptions import ConversationUnavailableException, JobStoreUnavailableException
from app.jobs.models import Job, ProgressionEntry


FIXED_NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


class InMemoryJobRepository:
    """Dict-backed JobRepository with the same compare-and-set contract as Mongo."""

    def __init__(self, jobs=()):
        self._jobs: Dict[str, Job] = {}
        for job in jobs:
            self._jobs[job.id] = job

    async def insert(self, job: Job) -> None:
        self._jobs[job.id] = job

    async def get(self, job_id: str) -> Optional[Job]:
        # Yield so concurrent callers interleave between read and write.
        await asyncio.sleep(0)
        return self._jobs.get(job_id)

    async def list_by_customer(self, customer_id: str) -> List[Job]:
        return [j for j in self._jobs.values() if j.customer_id == customer_id]

    async def list_by_mechanic(self, mechanic_id: str) -> List[Job]:
        return [j for j in self._jobs.values() if j.selected_mechanic_id == mechanic_id]

    async def update_status(
        self,
        job_id: str,
        expected_status: str,
        changes: Dict[str, Any],
        entry: ProgressionEntry,
    ) -> Optional[Job]:
        job = self._jobs.get(job_id)
        if job is None or job.status != expected_status:
            return None
        updated = job.model_copy(update={**changes, "progression": [*job.progression, entry]})
        self._jobs[job_id] = updated
        return updated


class InMemoryConversationRepository:
    """Dict-backed ConversationRepository; create_if_absent is atomic on the key."""

    def __init__(self):
        self.by_key: Dict[str, Conversation] = {}
        self.create_calls = 0

    async def find_by_key(self, key: str) -> Optional[Conversation]:
        await asyncio.sleep(0)
        return self.by_key.get(key)

    async def create_if_absent(self, key: str, draft: Conversation) -> Tuple[Conversation, bool]:
        self.create_calls += 1
        if key in self.by_key:
            return self.by_key[key], False
        self.by_key[key] = draft
        return draft, True

    async def get(self, conversation_id: str) -> Optional[Conversation]:
        for conversation in self.by_key.values():
            if conversation.id == conversation_id:
                return conversation
        return None

    async def list_for_participant(self, user_id: str, include_archived: bool = False) -> List[Conversation]:
        return [
            c for c in self.by_key.values()
            if user_id in c.participants and (include_archived or not c.is_archived)
        ]

    async def set_flag(self, conversation_id: str, flag: str, value: bool, now) -> Optional[Conversation]:
        conversation = await self.get(conversation_id)
        if conversation is None:
            return None
        updated = conversation.model_copy(update={flag: value, "updated_at": now})
        self.by_key[conversation.key] = updated
        return updated


class UnavailableConversationRepository:
    """Conversation store that is never reachable."""

    async def find_by_key(self, key):
        raise ConversationUnavailableException("Conversation store is not connected")

    async def create_if_absent(self, key, draft):
        raise ConversationUnavailableException("Conversation store is not connected")

    async def get(self, conversation_id):
        raise ConversationUnavailableException("Conversation store is not connected")

    async def list_for_participant(self, user_id, include_archived=False):
        raise ConversationUnavailableException("Conversation store is not connected")

    async def set_flag(self, conversation_id, flag, value, now):
        raise ConversationUnavailableException("Conversation store is not connected")



class UnavailableJobRepository:
    """Job store that is never reachable."""

    async def insert(self, job):
        raise JobStoreUnavailableException("Job store is not connected")

    async def get(self, job_id):
        raise JobStoreUnavailableException("Job store is not connected")

    async def list_by_customer(self, customer_id):
        raise JobStoreUnavailableException("Job store is not connected")

    async def list_by_mechanic(self, mechanic_id):
        raise JobStoreUnavailableException("Job store is not connected")

    async def update_status(self, job_id, expected_status, changes, entry):
        raise JobStoreUnavailableException("Job store is not connected")
