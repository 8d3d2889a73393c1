"""
Agent Orchestrator - runs one chat turn end to end.

Flow:
1. Load the companion (fail fast if it doesn't exist)
2. Load the history window and ranked memories
3. Compose the prompt with a freshly read content policy
4. Store the user message
5. Call the model
6. Store the reply
"""

from typing import Callable, Optional

from agents.prompt_composer import build_chat_prompt
from config.settings import settings
from core import get_logger
from memory.memory_manager_async import AsyncMemoryManager
from schemas import ContentPolicy, load_policy

logger = get_logger(__name__)


class AgentOrchestrator:
    """
    Coordinates a single user message into a persisted reply.

    No transaction spans the two writes. The user message is stored before the
    model is called, so a failed completion leaves the user's turn in place
    without a reply; the next turn simply appends after it.
    """

    def __init__(
        self,
        memory: AsyncMemoryManager,
        llm,
        policy_provider: Callable[[], ContentPolicy] = load_policy,
        model: Optional[str] = None,
    ):
        """
        Args:
            memory: Memory manager over the stores
            llm: Completion client exposing ``async complete(messages, model=...)``
            policy_provider: Called once per turn for the current content policy
            model: Model for chat replies
        """
        self.memory = memory
        self.llm = llm
        self.policy_provider = policy_provider
        self.model = model or settings.MODEL_CONVERSATION
        logger.info("Agent orchestrator initialized", model=self.model)

    async def chat_turn(self, user_id: int, companion_id: int, message: str) -> str:
        """
        Process a user message and return the companion's reply.

        Args:
            user_id: User ID
            companion_id: Companion ID
            message: User's message text (validated at the boundary)

        Returns:
            Reply text, exactly as persisted

        Raises:
            CompanionNotFoundError: If the companion doesn't exist (nothing is stored)
            CompletionError: If the model call fails (the user message stays stored)
        """
        # 1-2. Load state
        context = await self.memory.get_chat_context(user_id, companion_id)

        logger.info(
            "Processing message",
            user_id=user_id,
            companion_id=companion_id,
            message_preview=message[:50] if len(message) > 50 else message,
        )

        # 3. Compose
        policy = self.policy_provider()
        prompt = build_chat_prompt(
            policy=policy,
            memories=context.memories,
            companion=context.companion,
            history=context.history,
            user_message=message,
        )

        # 4. Store user message first
        await self.memory.add_message(user_id, companion_id, "user", message)

        # 5. Get companion reply
        try:
            reply = await self.llm.complete(prompt, model=self.model)
        except Exception as e:
            logger.error(
                "Chat completion failed, user message kept without reply",
                user_id=user_id,
                companion_id=companion_id,
                error=str(e),
            )
            raise
        reply = reply or ""

        # 6. Store assistant reply
        await self.memory.add_message(user_id, companion_id, "assistant", reply)

        logger.info(
            "Chat turn complete",
            companion_id=companion_id,
            history_count=len(context.history),
            memory_count=len(context.memories),
            reply_length=len(reply),
        )
        return reply
