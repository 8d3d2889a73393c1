"""
Async Memory Manager - Unified interface for all store operations.

The agents never touch the database directly. This class owns the read-side
selection rules (memory ranking, the chat history window, the recap window)
and passes writes through to the store.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from config.settings import settings
from core import (
    get_logger,
    AICompanionException,
    CompanionNotFoundError,
    MemoryException,
)
from schemas import (
    UserSchema,
    CompanionSchema,
    MemoryFactSchema,
    MessageSchema,
    RecapSchema,
    ChatContextSchema,
)

logger = get_logger(__name__)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize an aware timestamp to the naive UTC form the store keeps."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class AsyncMemoryManager:
    """
    Unified async memory interface for the AI Companion.

    Args:
        database: Store implementing the message, memory, recap and companion
            operations (``memory.database_async.AsyncDatabase`` in production)
    """

    def __init__(self, database):
        self.db = database
        logger.info("Memory manager initialized", store=type(database).__name__)

    # ==================== Users & Companions ====================

    async def get_or_create_user(self, email: str) -> UserSchema:
        return await self.db.get_or_create_user(email)

    async def create_companion(
        self,
        user_id: int,
        name: str,
        tone_level: Optional[int] = None,
        persona: Optional[Dict[str, Any]] = None,
    ) -> CompanionSchema:
        """Create a companion, applying the configured default tone level."""
        return await self.db.create_companion(
            user_id=user_id,
            name=name,
            tone_level=settings.DEFAULT_TONE_LEVEL if tone_level is None else tone_level,
            persona=persona or {},
        )

    async def get_companion(self, companion_id: int) -> Optional[CompanionSchema]:
        return await self.db.get_companion(companion_id)

    async def require_companion(self, companion_id: int) -> CompanionSchema:
        """
        Get a companion or fail.

        Raises:
            CompanionNotFoundError: If the companion does not exist
        """
        companion = await self.db.get_companion(companion_id)
        if companion is None:
            logger.warning("Companion not found", companion_id=companion_id)
            raise CompanionNotFoundError(companion_id)
        return companion

    async def list_companions(self) -> List[CompanionSchema]:
        return await self.db.list_companions()

    async def update_tone_level(self, companion_id: int, tone_level: int) -> CompanionSchema:
        return await self.db.update_tone_level(companion_id, tone_level)

    # ==================== Memory Ranker ====================

    async def get_ranked_memories(
        self, companion_id: int, limit: Optional[int] = None
    ) -> List[MemoryFactSchema]:
        """
        Top memories for a companion, importance descending.

        Ties keep the store's order (newest first). An empty list is normal for
        a new companion.
        """
        limit = limit or settings.MEMORY_RANK_LIMIT
        memories = await self.db.query_ranked_memories(companion_id, limit=limit)
        return memories[:limit]

    async def upsert_memory(
        self,
        companion_id: int,
        key: str,
        value: str,
        importance: Optional[int] = None,
    ) -> MemoryFactSchema:
        """
        Insert or overwrite a fact for a companion.

        Raises:
            CompanionNotFoundError: If the companion does not exist
        """
        await self.require_companion(companion_id)
        memory = await self.db.upsert_memory(companion_id, key, value, importance)
        logger.info("Stored memory", companion_id=companion_id, key=key, importance=memory.importance)
        return memory

    # ==================== History Window ====================

    async def get_history_window(
        self, user_id: int, companion_id: int, limit: Optional[int] = None
    ) -> List[MessageSchema]:
        """
        Most recent messages for a user/companion pair, oldest first.

        The store hands back newest-first; the window is reversed before use.
        """
        limit = limit or settings.HISTORY_WINDOW_LIMIT
        recent = await self.db.query_recent_messages(user_id, companion_id, limit=limit)
        return list(reversed(recent[:limit]))

    async def get_chat_context(self, user_id: int, companion_id: int) -> ChatContextSchema:
        """
        Load everything a chat turn needs.

        Raises:
            CompanionNotFoundError: If the companion does not exist
            MemoryException: If context retrieval fails
        """
        try:
            companion = await self.require_companion(companion_id)
            history = await self.get_history_window(user_id, companion_id)
            memories = await self.get_ranked_memories(companion_id)

            logger.debug(
                "Retrieved chat context",
                companion_id=companion_id,
                history_count=len(history),
                memory_count=len(memories),
            )
            return ChatContextSchema(companion=companion, memories=memories, history=history)

        except AICompanionException:
            raise
        except Exception as e:
            logger.error("Failed to get chat context", companion_id=companion_id, error=str(e))
            raise MemoryException(f"Failed to get chat context: {e}")

    async def add_message(
        self, user_id: int, companion_id: int, role: str, content: str
    ) -> MessageSchema:
        message = await self.db.append_message(user_id, companion_id, role, content)
        logger.debug("Added message", companion_id=companion_id, role=role, length=len(content))
        return message

    # ==================== Recap Window ====================

    async def get_recap_window(
        self, companion_id: int, limit: Optional[int] = None
    ) -> List[MessageSchema]:
        """Oldest messages for a companion across all its users, oldest first."""
        limit = limit or settings.RECAP_WINDOW_LIMIT
        messages = await self.db.query_chronological_messages(companion_id, limit=limit)
        return messages[:limit]

    async def find_recap(
        self, companion_id: int, range_start: datetime, range_end: datetime
    ) -> Optional[RecapSchema]:
        return await self.db.find_recap_by_range(companion_id, range_start, range_end)

    async def add_recap(
        self,
        companion_id: int,
        summary: str,
        range_start: datetime,
        range_end: datetime,
    ) -> RecapSchema:
        recap = await self.db.append_recap(companion_id, summary, range_start, range_end)
        logger.info(
            "Stored recap",
            companion_id=companion_id,
            range_start=range_start.isoformat(),
            range_end=range_end.isoformat(),
        )
        return recap

    async def list_recaps(
        self,
        companion_id: int,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> List[RecapSchema]:
        return await self.db.list_recaps(
            companion_id, since=to_naive_utc(since), until=to_naive_utc(until)
        )
