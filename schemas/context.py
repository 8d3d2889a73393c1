"""Chat context schema: everything loaded before a prompt is composed."""

from typing import List

from pydantic import BaseModel, Field

from schemas.companion import CompanionSchema
from schemas.memory_fact import MemoryFactSchema
from schemas.message import MessageSchema


class ChatContextSchema(BaseModel):
    """State for one chat turn, loaded from the stores."""

    companion: CompanionSchema = Field(..., description="Companion being talked to")
    memories: List[MemoryFactSchema] = Field(
        default_factory=list,
        description="Ranked memories, importance descending",
    )
    history: List[MessageSchema] = Field(
        default_factory=list,
        description="Recent messages, oldest first",
    )
