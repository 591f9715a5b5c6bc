"""Conversations API routes."""

import logging
from typing import List

from fastapi import APIRouter, Depends, Path, Query

from app.api.deps import get_conversation_resolver, get_job_store
from app.core.dependencies import get_current_user
from app.core.exceptions import ForbiddenException, JobStoreUnavailableException, NotFoundException
from app.core.features import FeatureCapabilities, get_features
from app.conversations.keys import normalize_pair
from app.conversations.models import (
    Conversation,
    ConversationFlag,
    ConversationFlagRequest,
    ConversationResponse,
    ConversationsListResponse,
    OpenConversationRequest,
    OpenConversationResponse,
)
from app.conversations.service import ConversationResolver
from app.jobs.models import Job
from app.jobs.service import JobStore
from app.jobs.state_machine import AWAITING_QUOTES_STATUSES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/conversations", tags=["Conversations"])


def _require_messaging(features: FeatureCapabilities = Depends(get_features)) -> FeatureCapabilities:
    if not features.messaging:
        raise NotFoundException("Messaging is not available")
    return features


def _ensure_in_pair(pair: List[str], user: dict) -> None:
    if user["id"] not in pair:
        raise ForbiddenException("You can only open conversations you take part in")


def _ensure_may_open(job: Job, pair: List[str], user: dict) -> None:
    """
    The pair must be the job's customer and a mechanic for that job: the
    selected one, or, while quotes are still open, the mechanic asking.
    """
    _ensure_in_pair(pair, user)
    if job.customer_id not in pair:
        raise ForbiddenException("Conversations are between the job's customer and a mechanic")

    other = next(p for p in pair if p != job.customer_id)
    if other == job.selected_mechanic_id:
        return
    quoting = job.selected_mechanic_id is None and job.status in AWAITING_QUOTES_STATUSES
    if quoting and user["role"] == "mechanic" and user["id"] == other:
        return
    raise ForbiddenException("You do not have access to conversations on this job")


def _to_response(conversation: Conversation, viewer_id: str) -> ConversationResponse:
    return ConversationResponse(
        id=conversation.id,
        job_id=conversation.job_id,
        type=conversation.type,
        title=conversation.title_for(viewer_id),
        participants=conversation.participants,
        participant_names=conversation.participant_names,
        last_message=conversation.last_message,
        last_message_time=conversation.last_message_time,
        created_at=conversation.created_at,
        updated_at=conversation.updated_at,
        is_pinned=conversation.is_pinned,
        is_archived=conversation.is_archived,
        is_muted=conversation.is_muted,
        unread_count=conversation.unread_counts.get(viewer_id, 0),
        metadata=conversation.metadata,
    )


@router.post("/jobs/{job_id}", response_model=OpenConversationResponse)
async def open_job_conversation(
    body: OpenConversationRequest,
    job_id: str = Path(..., description="Job ID"),
    current_user: dict = Depends(get_current_user),
    features: FeatureCapabilities = Depends(_require_messaging),
    store: JobStore = Depends(get_job_store),
    resolver: ConversationResolver = Depends(get_conversation_resolver),
):
    """
    Open the conversation between the job's customer and a mechanic.

    Returns the existing thread when there is one. With the fallback
    capability on, an unreachable store gives an ephemeral thread and
    `degraded: true`.
    """
    pair = list(normalize_pair(body.participant_ids))
    try:
        job = await store.get(job_id)
    except JobStoreUnavailableException:
        if not features.conversation_fallback:
            raise
        _ensure_in_pair(pair, current_user)
        logger.warning(f"Job store unavailable, opening ephemeral conversation for job {job_id}")
        result = await resolver.ephemeral(
            body.participant_ids, job_id, body.participant_names, current_user_id=current_user["id"]
        )
    else:
        _ensure_may_open(job, pair, current_user)
        if features.conversation_fallback:
            result = await resolver.find_or_create_with_fallback(
                body.participant_ids, job_id, body.participant_names, current_user_id=current_user["id"]
            )
        else:
            result = await resolver.find_or_create(
                body.participant_ids, job_id, body.participant_names, current_user_id=current_user["id"]
            )

    return OpenConversationResponse(
        conversation=_to_response(result.conversation, current_user["id"]),
        is_new=result.is_new,
        degraded=result.degraded,
    )


@router.get("", response_model=ConversationsListResponse)
async def list_conversations(
    include_archived: bool = Query(False),
    current_user: dict = Depends(get_current_user),
    features: FeatureCapabilities = Depends(_require_messaging),
    resolver: ConversationResolver = Depends(get_conversation_resolver),
):
    conversations = await resolver.list_for_user(current_user["id"], include_archived=include_archived)
    return ConversationsListResponse(
        conversations=[_to_response(c, current_user["id"]) for c in conversations],
        total=len(conversations),
    )


@router.get("/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(
    conversation_id: str = Path(...),
    current_user: dict = Depends(get_current_user),
    features: FeatureCapabilities = Depends(_require_messaging),
    resolver: ConversationResolver = Depends(get_conversation_resolver),
):
    conversation = await resolver.get_for_participant(conversation_id, current_user["id"])
    return _to_response(conversation, current_user["id"])


@router.post("/{conversation_id}/flags/{flag}", response_model=ConversationResponse)
async def set_conversation_flag(
    body: ConversationFlagRequest,
    conversation_id: str = Path(...),
    flag: ConversationFlag = Path(..., description="is_pinned | is_archived | is_muted"),
    current_user: dict = Depends(get_current_user),
    features: FeatureCapabilities = Depends(_require_messaging),
    resolver: ConversationResolver = Depends(get_conversation_resolver),
):
    conversation = await resolver.set_flag(conversation_id, current_user["id"], flag, body.value)
    return _to_response(conversation, current_user["id"])
