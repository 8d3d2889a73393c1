"""
Shared pytest fixtures for AI Companion tests.
"""

import pytest
from datetime import datetime, timedelta
from itertools import count
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

from core import CompanionNotFoundError
from schemas import (
    ContentPolicy,
    CompanionSchema,
    MemoryFactSchema,
    MessageSchema,
    RecapSchema,
    UserSchema,
)


# --- In-memory store ---

class FakeDatabase:
    """
    In-memory stand-in for AsyncDatabase.

    Implements the same store operations. Every write advances a fake clock by
    one second so creation order is strict and deterministic.
    """

    def __init__(self, start: datetime = datetime(2026, 2, 5, 14, 30, 0)):
        self._ids = count(1)
        self._clock = start
        self.users: Dict[int, UserSchema] = {}
        self.companions: Dict[int, CompanionSchema] = {}
        self.memories: List[MemoryFactSchema] = []
        self.messages: List[MessageSchema] = []
        self.recaps: List[RecapSchema] = []

    def _now(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    async def get_or_create_user(self, email: str) -> UserSchema:
        for user in self.users.values():
            if user.email == email:
                return user
        user = UserSchema(id=next(self._ids), email=email, created_at=self._now())
        self.users[user.id] = user
        return user

    async def create_companion(
        self, user_id: int, name: str, tone_level: int, persona: Dict[str, Any]
    ) -> CompanionSchema:
        companion = CompanionSchema(
            id=next(self._ids),
            user_id=user_id,
            name=name,
            tone_level=tone_level,
            persona=persona,
            created_at=self._now(),
        )
        self.companions[companion.id] = companion
        return companion

    async def get_companion(self, companion_id: int) -> Optional[CompanionSchema]:
        return self.companions.get(companion_id)

    async def list_companions(self) -> List[CompanionSchema]:
        return sorted(self.companions.values(), key=lambda c: c.id)

    async def update_tone_level(self, companion_id: int, tone_level: int) -> CompanionSchema:
        if companion_id not in self.companions:
            raise CompanionNotFoundError(companion_id)
        updated = self.companions[companion_id].model_copy(update={"tone_level": tone_level})
        self.companions[companion_id] = updated
        return updated

    async def upsert_memory(
        self, companion_id: int, key: str, value: str, importance: Optional[int] = None
    ) -> MemoryFactSchema:
        now = self._now()
        for i, memory in enumerate(self.memories):
            if memory.companion_id == companion_id and memory.key == key:
                changes = {"value": value, "updated_at": now}
                if importance is not None:
                    changes["importance"] = importance
                self.memories[i] = memory.model_copy(update=changes)
                return self.memories[i]
        memory = MemoryFactSchema(
            id=next(self._ids),
            companion_id=companion_id,
            key=key,
            value=value,
            importance=50 if importance is None else importance,
            created_at=now,
            updated_at=now,
        )
        self.memories.append(memory)
        return memory

    async def query_ranked_memories(self, companion_id: int, limit: int = 20) -> List[MemoryFactSchema]:
        rows = [m for m in self.memories if m.companion_id == companion_id]
        return sorted(rows, key=lambda m: (-m.importance, -m.id))[:limit]

    async def append_message(
        self, user_id: int, companion_id: int, role: str, content: str
    ) -> MessageSchema:
        message = MessageSchema(
            id=next(self._ids),
            user_id=user_id,
            companion_id=companion_id,
            role=role,
            content=content,
            created_at=self._now(),
        )
        self.messages.append(message)
        return message

    async def query_recent_messages(
        self, user_id: int, companion_id: int, limit: int = 30
    ) -> List[MessageSchema]:
        rows = [m for m in self.messages if m.user_id == user_id and m.companion_id == companion_id]
        return sorted(rows, key=lambda m: (m.created_at, m.id), reverse=True)[:limit]

    async def query_chronological_messages(self, companion_id: int, limit: int = 500) -> List[MessageSchema]:
        rows = [m for m in self.messages if m.companion_id == companion_id]
        return sorted(rows, key=lambda m: (m.created_at, m.id))[:limit]

    async def append_recap(
        self, companion_id: int, summary: str, range_start: datetime, range_end: datetime
    ) -> RecapSchema:
        recap = RecapSchema(
            id=next(self._ids),
            companion_id=companion_id,
            summary=summary,
            range_start=range_start,
            range_end=range_end,
            created_at=self._now(),
        )
        self.recaps.append(recap)
        return recap

    async def find_recap_by_range(
        self, companion_id: int, range_start: datetime, range_end: datetime
    ) -> Optional[RecapSchema]:
        for recap in self.recaps:
            if (recap.companion_id, recap.range_start, recap.range_end) == (companion_id, range_start, range_end):
                return recap
        return None

    async def list_recaps(
        self, companion_id: int, since: Optional[datetime] = None, until: Optional[datetime] = None
    ) -> List[RecapSchema]:
        rows = [r for r in self.recaps if r.companion_id == companion_id]
        if since is not None:
            rows = [r for r in rows if r.range_start >= since]
        if until is not None:
            rows = [r for r in rows if r.range_end <= until]
        return sorted(rows, key=lambda r: (r.range_start, r.id))


@pytest.fixture
def fake_db():
    """Fresh in-memory store per test."""
    return FakeDatabase()


@pytest.fixture
def memory_manager(fake_db):
    from memory.memory_manager_async import AsyncMemoryManager

    return AsyncMemoryManager(fake_db)


# --- Mock LLM client ---

@pytest.fixture
def mock_llm():
    """Mock completion client for testing without API calls."""
    llm = AsyncMock()
    llm.complete = AsyncMock(return_value="hey! good to hear from you")
    return llm


# --- Agents ---

@pytest.fixture
def default_policy():
    return ContentPolicy(allow_flirtation=True, allow_adult_content=False)


@pytest.fixture
def orchestrator(memory_manager, mock_llm, default_policy):
    from agents.orchestrator import AgentOrchestrator

    return AgentOrchestrator(
        memory_manager,
        mock_llm,
        policy_provider=lambda: default_policy,
        model="test-model",
    )


@pytest.fixture
def recap_agent(memory_manager, mock_llm):
    from agents.recap_agent import RecapAgent

    return RecapAgent(memory_manager, mock_llm, model="test-model", min_messages=20, window_limit=500)


# --- Test data ---

@pytest.fixture
async def user(fake_db):
    return await fake_db.get_or_create_user("sam@example.com")


@pytest.fixture
async def companion(fake_db, user):
    return await fake_db.create_companion(
        user_id=user.id,
        name="Juniper",
        tone_level=35,
        persona={"style": "playful", "hobbies": ["climbing", "jazz"]},
    )


async def seed_messages(db: FakeDatabase, user_id: int, companion_id: int, n: int) -> List[MessageSchema]:
    """Append n alternating user/assistant messages."""
    messages = []
    for i in range(n):
        role = "user" if i % 2 == 0 else "assistant"
        messages.append(await db.append_message(user_id, companion_id, role, f"message {i}"))
    return messages


@pytest.fixture
def seed():
    """Factory fixture for seeding conversation history."""
    return seed_messages
