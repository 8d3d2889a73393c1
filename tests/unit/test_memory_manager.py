"""
Tests for the memory manager's selection rules: memory ranking, the chat
history window and the recap window.
"""

from datetime import datetime, timedelta, timezone

import pytest

from core import CompanionNotFoundError
from memory.memory_manager_async import to_naive_utc


class TestMemoryRanker:
    """Top memories by importance."""

    async def test_empty_for_new_companion(self, memory_manager, companion):
        assert await memory_manager.get_ranked_memories(companion.id) == []

    async def test_caps_at_twenty_and_orders_by_importance(self, memory_manager, fake_db, companion):
        for i in range(25):
            await fake_db.upsert_memory(companion.id, f"fact_{i}", f"value {i}", importance=(i * 37) % 101)

        ranked = await memory_manager.get_ranked_memories(companion.id)

        assert len(ranked) == 20
        importances = [m.importance for m in ranked]
        assert importances == sorted(importances, reverse=True)

    async def test_ties_are_newest_first(self, memory_manager, fake_db, companion):
        await fake_db.upsert_memory(companion.id, "older", "a", importance=60)
        await fake_db.upsert_memory(companion.id, "newer", "b", importance=60)

        ranked = await memory_manager.get_ranked_memories(companion.id)

        assert [m.key for m in ranked] == ["newer", "older"]

    async def test_scoped_to_companion(self, memory_manager, fake_db, user, companion):
        other = await fake_db.create_companion(user.id, "Other", 20, {})
        await fake_db.upsert_memory(other.id, "secret", "not yours", importance=100)

        assert await memory_manager.get_ranked_memories(companion.id) == []


class TestMemoryUpsert:
    """One fact per (companion, key)."""

    async def test_same_key_overwrites_value(self, memory_manager, fake_db, companion):
        await memory_manager.upsert_memory(companion.id, "city", "Toronto", importance=70)
        updated = await memory_manager.upsert_memory(companion.id, "city", "Montreal")

        assert updated.value == "Montreal"
        assert updated.importance == 70  # kept when not given
        assert len([m for m in fake_db.memories if m.companion_id == companion.id]) == 1

    async def test_new_fact_defaults_to_fifty(self, memory_manager, companion):
        memory = await memory_manager.upsert_memory(companion.id, "music", "jazz")

        assert memory.importance == 50

    async def test_unknown_companion(self, memory_manager, fake_db):
        with pytest.raises(CompanionNotFoundError):
            await memory_manager.upsert_memory(999, "k", "v")

        assert fake_db.memories == []


class TestHistoryWindow:
    """Most recent turns, oldest first."""

    async def test_empty_history(self, memory_manager, user, companion):
        assert await memory_manager.get_history_window(user.id, companion.id) == []

    async def test_keeps_latest_thirty_in_chronological_order(self, memory_manager, fake_db, user, companion, seed):
        messages = await seed(fake_db, user.id, companion.id, 45)

        window = await memory_manager.get_history_window(user.id, companion.id)

        assert len(window) == 30
        assert [m.id for m in window] == [m.id for m in messages[-30:]]
        stamps = [m.created_at for m in window]
        assert stamps == sorted(stamps)

    async def test_scoped_to_user_companion_pair(self, memory_manager, fake_db, user, companion, seed):
        someone_else = await fake_db.get_or_create_user("other@example.com")
        await seed(fake_db, someone_else.id, companion.id, 3)
        mine = await seed(fake_db, user.id, companion.id, 2)

        window = await memory_manager.get_history_window(user.id, companion.id)

        assert [m.id for m in window] == [m.id for m in mine]


class TestRecapWindow:
    """Oldest messages across every user of a companion."""

    async def test_oldest_first_and_capped(self, memory_manager, fake_db, user, companion, seed):
        messages = await seed(fake_db, user.id, companion.id, 12)

        window = await memory_manager.get_recap_window(companion.id, limit=5)

        assert [m.id for m in window] == [m.id for m in messages[:5]]


class TestListRecaps:
    """Recap listing with inclusive, timezone-aware bounds."""

    @pytest.fixture
    async def recaps(self, memory_manager, companion):
        """Two stored recaps: 1 to 2 March and 8 to 9 March 2026 (naive UTC)."""
        first = await memory_manager.add_recap(
            companion.id, "week one", datetime(2026, 3, 1, 10), datetime(2026, 3, 2, 10)
        )
        second = await memory_manager.add_recap(
            companion.id, "week two", datetime(2026, 3, 8, 10), datetime(2026, 3, 9, 10)
        )
        return first, second

    async def test_no_bounds_returns_all_oldest_first(self, memory_manager, companion, recaps):
        listed = await memory_manager.list_recaps(companion.id)

        assert [r.summary for r in listed] == ["week one", "week two"]

    async def test_bounds_are_inclusive(self, memory_manager, companion, recaps):
        listed = await memory_manager.list_recaps(
            companion.id,
            since=datetime(2026, 3, 1, 10, tzinfo=timezone.utc),
            until=datetime(2026, 3, 2, 10, tzinfo=timezone.utc),
        )

        assert [r.summary for r in listed] == ["week one"]

    async def test_aware_bounds_are_converted_to_utc(self, memory_manager, companion, recaps):
        # 12:00 at UTC+2 is 10:00 UTC, the start of week two
        plus_two = timezone(timedelta(hours=2))

        listed = await memory_manager.list_recaps(
            companion.id, since=datetime(2026, 3, 8, 12, tzinfo=plus_two)
        )

        assert [r.summary for r in listed] == ["week two"]

    async def test_window_excluding_every_recap(self, memory_manager, companion, recaps):
        listed = await memory_manager.list_recaps(
            companion.id,
            since=datetime(2026, 3, 3, tzinfo=timezone.utc),
            until=datetime(2026, 3, 7, tzinfo=timezone.utc),
        )

        assert listed == []

    def test_to_naive_utc(self):
        aware = datetime(2026, 3, 8, 7, 0, tzinfo=timezone(timedelta(hours=-5)))

        assert to_naive_utc(aware) == datetime(2026, 3, 8, 12, 0)
        assert to_naive_utc(datetime(2026, 3, 8, 12, 0)) == datetime(2026, 3, 8, 12, 0)
        assert to_naive_utc(None) is None


class TestChatContext:
    """Everything a turn needs, loaded together."""

    async def test_unknown_companion(self, memory_manager, user):
        with pytest.raises(CompanionNotFoundError):
            await memory_manager.get_chat_context(user.id, 12345)

    async def test_loads_companion_history_and_memories(self, memory_manager, fake_db, user, companion, seed):
        await seed(fake_db, user.id, companion.id, 4)
        await fake_db.upsert_memory(companion.id, "pet", "cat", importance=80)

        context = await memory_manager.get_chat_context(user.id, companion.id)

        assert context.companion.id == companion.id
        assert len(context.history) == 4
        assert [m.key for m in context.memories] == ["pet"]
