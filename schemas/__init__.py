"""
Pydantic schemas for type-safe data transfer.
"""

from schemas.user import UserSchema, UserCreateSchema
from schemas.companion import CompanionSchema, CompanionCreateSchema, ToneUpdateSchema
from schemas.memory_fact import MemoryFactSchema, MemoryFactUpsertSchema
from schemas.message import MessageSchema, ChatRequestSchema, ChatReplySchema
from schemas.recap import (
    RecapSchema,
    RecapRequestSchema,
    RecapOutcomeSchema,
    RecapBatchResultSchema,
)
from schemas.context import ChatContextSchema
from schemas.policy import ContentPolicy, load_policy

__all__ = [
    "UserSchema",
    "UserCreateSchema",
    "CompanionSchema",
    "CompanionCreateSchema",
    "ToneUpdateSchema",
    "MemoryFactSchema",
    "MemoryFactUpsertSchema",
    "MessageSchema",
    "ChatRequestSchema",
    "ChatReplySchema",
    "RecapSchema",
    "RecapRequestSchema",
    "RecapOutcomeSchema",
    "RecapBatchResultSchema",
    "ChatContextSchema",
    "ContentPolicy",
    "load_policy",
]
