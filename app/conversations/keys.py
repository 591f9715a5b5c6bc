"""Canonical conversation keys.

The key only depends on the job and the unordered participant pair, so both
sides of a conversation resolve to the same thread.
"""

from __future__ import annotations

import hashlib
from typing import Sequence, Tuple

from app.core.exceptions import ValidationException


def normalize_pair(participant_ids: Sequence[str]) -> Tuple[str, str]:
    """Validate a participant pair and return it sorted."""
    ids = [(p or "").strip() for p in (participant_ids or [])]
    if len(ids) != 2 or not all(ids):
        raise ValidationException("A conversation needs exactly two participant ids")
    if ids[0] == ids[1]:
        raise ValidationException("Conversation participants must be distinct")
    first, second = sorted(ids)
    return first, second


def canonical_key(job_id: str, participant_ids: Sequence[str]) -> str:
    if not job_id:
        raise ValidationException("A job id is required")
    first, second = normalize_pair(participant_ids)
    return f"{job_id}:{first}:{second}"


def conversation_id_for(key: str) -> str:
    return "conv_" + hashlib.sha256(key.encode("utf-8")).hexdigest()[:24]
