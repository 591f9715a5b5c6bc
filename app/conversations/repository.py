"""Conversation persistence (Mongo adapter behind a small protocol)."""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol, Tuple

from pymongo import ReturnDocument
from pymongo.errors import ConnectionFailure, DuplicateKeyError

from app.core.database import Database
from app.core.exceptions import ConversationUnavailableException
from app.conversations.models import Conversation

logger = logging.getLogger(__name__)


class ConversationRepository(Protocol):
    async def find_by_key(self, key: str) -> Optional[Conversation]:
        ...

    async def create_if_absent(self, key: str, draft: Conversation) -> Tuple[Conversation, bool]:
        """Insert `draft` unless a conversation with `key` exists. Returns (stored, created)."""
        ...

    async def get(self, conversation_id: str) -> Optional[Conversation]:
        ...

    async def list_for_participant(self, user_id: str, include_archived: bool = False) -> List[Conversation]:
        ...

    async def set_flag(self, conversation_id: str, flag: str, value: bool, now) -> Optional[Conversation]:
        ...


class MongoConversationRepository:
    """
    Conversations stored in the `conversations` collection.

    `key` carries a unique index, so creation is an upsert on the key and
    concurrent callers converge on a single document.
    """

    @staticmethod
    def _collection():
        if Database.db is None:
            raise ConversationUnavailableException("Conversation store is not connected")
        return Database.get_collection("conversations")

    async def find_by_key(self, key: str) -> Optional[Conversation]:
        try:
            doc = await self._collection().find_one({"key": key})
        except ConnectionFailure as e:
            logger.error(f"Conversation lookup failed for {key}: {e}")
            raise ConversationUnavailableException() from e
        return Conversation.from_document(doc) if doc else None

    async def create_if_absent(self, key: str, draft: Conversation) -> Tuple[Conversation, bool]:
        collection = self._collection()
        try:
            try:
                result = await collection.update_one(
                    {"key": key},
                    {"$setOnInsert": draft.to_document()},
                    upsert=True,
                )
                created = result.upserted_id is not None
            except DuplicateKeyError:
                # Lost an upsert race on the unique key; the other insert stands.
                created = False
            doc = await collection.find_one({"key": key})
        except ConnectionFailure as e:
            logger.error(f"Conversation create failed for {key}: {e}")
            raise ConversationUnavailableException() from e

        if not doc:
            raise ConversationUnavailableException("Conversation was not persisted")
        return Conversation.from_document(doc), created

    async def get(self, conversation_id: str) -> Optional[Conversation]:
        try:
            doc = await self._collection().find_one({"conversation_id": conversation_id})
        except ConnectionFailure as e:
            logger.error(f"Conversation lookup failed for {conversation_id}: {e}")
            raise ConversationUnavailableException() from e
        return Conversation.from_document(doc) if doc else None

    async def list_for_participant(self, user_id: str, include_archived: bool = False) -> List[Conversation]:
        query = {"participants": user_id}
        if not include_archived:
            query["is_archived"] = {"$ne": True}
        try:
            docs = await self._collection().find(query).to_list(length=None)
        except ConnectionFailure as e:
            logger.error(f"Conversation listing failed for {user_id}: {e}")
            raise ConversationUnavailableException() from e
        return [Conversation.from_document(doc) for doc in docs]

    async def set_flag(self, conversation_id: str, flag: str, value: bool, now) -> Optional[Conversation]:
        try:
            doc = await self._collection().find_one_and_update(
                {"conversation_id": conversation_id},
                {"$set": {flag: value, "updated_at": now}},
                return_document=ReturnDocument.AFTER,
            )
        except ConnectionFailure as e:
            logger.error(f"Conversation flag update failed for {conversation_id}: {e}")
            raise ConversationUnavailableException() from e
        return Conversation.from_document(doc) if doc else None
