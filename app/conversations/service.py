"""Conversation resolution: one thread per (job, participant pair)."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from app.core.clock import utc_now
from app.core.exceptions import (
    ConversationUnavailableException,
    ForbiddenException,
    JobStoreUnavailableException,
    NotFoundException,
    ValidationException,
)
from app.conversations.keys import canonical_key, conversation_id_for, normalize_pair
from app.conversations.models import (
    Conversation,
    ConversationMetadata,
    ConversationResult,
)
from app.conversations.repository import ConversationRepository
from app.jobs.models import DEFAULT_JOB_TITLE, Job
from app.jobs.repository import JobRepository
from app.vehicles.resolver import VehicleResolver

logger = logging.getLogger(__name__)

CONVERSATION_FLAGS = ("is_pinned", "is_archived", "is_muted")
DEFAULT_PRIORITY = "medium"


def build_conversation(
    *,
    key: str,
    participant_ids: Sequence[str],
    participant_names: Sequence[str],
    job_id: str,
    job: Optional[Job],
    vehicle_description: str,
    now: datetime,
    viewer_id: Optional[str] = None,
    persisted: bool = True,
) -> Conversation:
    """
    Single constructor for stored and ephemeral conversations.

    `participant_names` is aligned with `participant_ids` as given by the
    caller; the title is the counterpart of `viewer_id` (the first participant
    when the viewer is not part of the pair). Without a `job` the metadata
    falls back to a generic service-request snapshot.
    """
    names = dict(zip(participant_ids, participant_names))
    viewer = viewer_id if viewer_id in names else participant_ids[0]
    counterpart = next(p for p in participant_ids if p != viewer)

    return Conversation(
        id=conversation_id_for(key),
        key=key,
        participants=list(normalize_pair(participant_ids)),
        participant_names=names,
        job_id=job_id,
        type="job_related",
        title=names.get(counterpart) or "",
        last_message=None,
        last_message_time=now,
        created_at=now,
        updated_at=now,
        is_pinned=False,
        is_archived=False,
        is_muted=False,
        unread_counts={p: 0 for p in participant_ids},
        metadata=ConversationMetadata(
            job_title=job.display_title if job else DEFAULT_JOB_TITLE,
            vehicle_description=vehicle_description,
            priority=(job.urgency if job else None) or DEFAULT_PRIORITY,
        ),
        persisted=persisted,
    )


def _sort_key(conversation: Conversation):
    latest = conversation.last_message_time or conversation.created_at
    return (not conversation.is_pinned, -latest.timestamp())


class ConversationResolver:
    """Finds or creates the durable conversation for a job and two participants."""

    def __init__(
        self,
        conversations: ConversationRepository,
        jobs: JobRepository,
        vehicles: VehicleResolver,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._conversations = conversations
        self._jobs = jobs
        self._vehicles = vehicles
        self._now = clock

    @staticmethod
    def _validate_names(participant_names: Sequence[str]) -> None:
        if not participant_names or len(participant_names) != 2:
            raise ValidationException("Exactly two participant names are required")

    async def _load_job(self, job_id: str) -> Job:
        job = await self._jobs.get(job_id)
        if job is None:
            raise NotFoundException("Job not found")
        return job

    async def _draft(
        self,
        key: str,
        participant_ids: Sequence[str],
        participant_names: Sequence[str],
        job_id: str,
        job: Optional[Job],
        viewer_id: Optional[str],
        persisted: bool,
    ) -> Conversation:
        vehicle_description = await self._vehicles.describe(job.vehicle) if job else ""
        return build_conversation(
            key=key,
            participant_ids=list(participant_ids),
            participant_names=list(participant_names),
            job_id=job_id,
            job=job,
            vehicle_description=vehicle_description,
            now=self._now(),
            viewer_id=viewer_id,
            persisted=persisted,
        )

    async def find_or_create(
        self,
        participant_ids: Sequence[str],
        job_id: str,
        participant_names: Sequence[str],
        *,
        current_user_id: Optional[str] = None,
    ) -> ConversationResult:
        """
        Return the conversation for (job_id, {A, B}), creating it on first use.

        An existing conversation is returned unchanged. Creation is an atomic
        create-if-absent on the canonical key, so concurrent callers get the
        same record.

        Raises:
            ValidationException: malformed participant pair or names.
            NotFoundException: unknown job.
            ConversationUnavailableException: conversation store unreachable.
        """
        key = canonical_key(job_id, participant_ids)
        participant_ids = [p.strip() for p in participant_ids]
        self._validate_names(participant_names)

        existing = await self._conversations.find_by_key(key)
        if existing is not None:
            return ConversationResult(conversation=existing, is_new=False)

        job = await self._load_job(job_id)
        draft = await self._draft(
            key, participant_ids, participant_names, job_id, job, current_user_id, persisted=True
        )
        stored, created = await self._conversations.create_if_absent(key, draft)
        if created:
            logger.info(f"Conversation {stored.id} created for job {job_id}")
        return ConversationResult(conversation=stored, is_new=created)

    async def find_or_create_with_fallback(
        self,
        participant_ids: Sequence[str],
        job_id: str,
        participant_names: Sequence[str],
        *,
        current_user_id: Optional[str] = None,
    ) -> ConversationResult:
        """
        Like find_or_create, but an unreachable store yields an ephemeral
        conversation flagged `degraded` instead of an error.
        """
        try:
            return await self.find_or_create(
                participant_ids, job_id, participant_names, current_user_id=current_user_id
            )
        except (ConversationUnavailableException, JobStoreUnavailableException) as e:
            logger.warning(f"Store unavailable for job {job_id}, using ephemeral thread: {e.detail}")

        try:
            job = await self._load_job(job_id)
        except JobStoreUnavailableException as e:
            logger.warning(f"Job store unavailable for job {job_id}, ephemeral thread has no job snapshot: {e.detail}")
            job = None
        return await self.ephemeral(
            participant_ids, job_id, participant_names, current_user_id=current_user_id, job=job
        )

    async def ephemeral(
        self,
        participant_ids: Sequence[str],
        job_id: str,
        participant_names: Sequence[str],
        *,
        current_user_id: Optional[str] = None,
        job: Optional[Job] = None,
    ) -> ConversationResult:
        """Unstored conversation flagged `degraded`; never touches the conversation or job store."""
        key = canonical_key(job_id, participant_ids)
        participant_ids = [p.strip() for p in participant_ids]
        self._validate_names(participant_names)
        draft = await self._draft(
            key, participant_ids, participant_names, job_id, job, current_user_id, persisted=False
        )
        return ConversationResult(conversation=draft, is_new=True, degraded=True)

    # ========================================================================
    # Listing and flags
    # ========================================================================

    async def list_for_user(self, user_id: str, include_archived: bool = False) -> List[Conversation]:
        """Pinned first, then most recent activity first."""
        conversations = await self._conversations.list_for_participant(user_id, include_archived)
        return sorted(conversations, key=_sort_key)

    async def get_for_participant(self, conversation_id: str, user_id: str) -> Conversation:
        conversation = await self._conversations.get(conversation_id)
        if conversation is None:
            raise NotFoundException("Conversation not found")
        if user_id not in conversation.participants:
            raise ForbiddenException("Not a participant of this conversation")
        return conversation

    async def set_flag(
        self,
        conversation_id: str,
        user_id: str,
        flag: str,
        value: Optional[bool] = None,
    ) -> Conversation:
        """Set `is_pinned`, `is_archived` or `is_muted`; `value=None` toggles."""
        if flag not in CONVERSATION_FLAGS:
            raise ValidationException(f"Unknown conversation flag '{flag}'")

        conversation = await self.get_for_participant(conversation_id, user_id)
        new_value = (not getattr(conversation, flag)) if value is None else bool(value)

        updated = await self._conversations.set_flag(conversation_id, flag, new_value, self._now())
        if updated is None:
            raise NotFoundException("Conversation not found")
        return updated
