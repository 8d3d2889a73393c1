"""
Recap Agent - periodic summaries of each companion's conversation.

Windowing: the oldest RECAP_WINDOW_LIMIT messages of a companion (all users)
are summarized as one recap covering [first.created_at, last.created_at].
Recaps are windowed, not cumulative: a companion with more messages than the
cap keeps getting the same oldest window.

Batch runs skip a window that already has a recap. Single-companion runs do
not check and will store another recap for the same window.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from agents.prompt_composer import build_recap_prompt
from config.settings import settings
from core import get_logger
from memory.memory_manager_async import AsyncMemoryManager
from schemas import MessageSchema, RecapBatchResultSchema, RecapOutcomeSchema

logger = get_logger(__name__)

INSUFFICIENT_HISTORY = "insufficient history"
DUPLICATE_WINDOW = "duplicate window"


def window_range(messages: List[MessageSchema]) -> Tuple[datetime, datetime]:
    """Time range covered by a chronological message window."""
    return messages[0].created_at, messages[-1].created_at


class RecapAgent:
    """Builds and stores recaps for one companion or for all of them."""

    def __init__(
        self,
        memory: AsyncMemoryManager,
        llm,
        model: Optional[str] = None,
        min_messages: Optional[int] = None,
        window_limit: Optional[int] = None,
    ):
        self.memory = memory
        self.llm = llm
        self.model = model or settings.MODEL_RECAP
        self.min_messages = settings.RECAP_MIN_MESSAGES if min_messages is None else min_messages
        self.window_limit = settings.RECAP_WINDOW_LIMIT if window_limit is None else window_limit

    async def recap_companion(self, companion_id: int, dedupe: bool) -> RecapOutcomeSchema:
        """
        Run the recap pipeline for one companion.

        Args:
            companion_id: Companion ID
            dedupe: Skip when a recap with the same window already exists

        Returns:
            RecapOutcomeSchema, "created" with the recap or "skipped" with a reason

        Raises:
            CompletionError: If the model call fails
        """
        messages = await self.memory.get_recap_window(companion_id, limit=self.window_limit)
        if not messages or len(messages) < self.min_messages:
            logger.debug(
                "Skipping recap, not enough messages",
                companion_id=companion_id,
                message_count=len(messages),
            )
            return RecapOutcomeSchema(status="skipped", reason=INSUFFICIENT_HISTORY)

        range_start, range_end = window_range(messages)

        if dedupe:
            existing = await self.memory.find_recap(companion_id, range_start, range_end)
            if existing is not None:
                logger.debug("Skipping recap, window already summarized", companion_id=companion_id)
                return RecapOutcomeSchema(status="skipped", reason=DUPLICATE_WINDOW)

        logger.info("Running recap", companion_id=companion_id, message_count=len(messages))
        summary = await self.llm.complete(build_recap_prompt(messages), model=self.model)

        recap = await self.memory.add_recap(
            companion_id,
            summary or "",
            range_start,
            range_end,
        )
        return RecapOutcomeSchema(status="created", recap=recap)

    async def recap_one(self, companion_id: int) -> RecapOutcomeSchema:
        """Recap a single companion on demand. No duplicate-window check."""
        return await self.recap_companion(companion_id, dedupe=False)

    async def recap_all(self) -> RecapBatchResultSchema:
        """
        Recap every companion, one after another.

        A failure for one companion is logged and counted, never raised; the
        run always continues with the next companion.
        """
        companions = await self.memory.list_companions()
        result = RecapBatchResultSchema(total=len(companions))

        for companion in companions:
            try:
                outcome = await self.recap_companion(companion.id, dedupe=True)
            except Exception as e:
                result.failed += 1
                logger.error("Recap failed", companion_id=companion.id, error=str(e))
                continue

            if outcome.created:
                result.created += 1
            else:
                result.skipped += 1

        logger.info(
            "Recap batch finished",
            created=result.created,
            skipped=result.skipped,
            failed=result.failed,
            total=result.total,
        )
        return result
