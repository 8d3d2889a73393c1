"""Message schemas."""

from datetime import datetime
from typing import Dict, Literal

from pydantic import BaseModel, Field, ConfigDict


class MessageBaseSchema(BaseModel):
    """Base message schema."""

    role: Literal["user", "assistant"] = Field(..., description="Message role")
    content: str = Field(..., description="Message content")


class ChatRequestSchema(BaseModel):
    """Schema for an inbound chat turn."""

    user_id: int = Field(..., description="User ID")
    companion_id: int = Field(..., description="Companion ID")
    message: str = Field(..., min_length=1, max_length=4000, description="User message")


class ChatReplySchema(BaseModel):
    """Schema for the reply to a chat turn."""

    reply: str = Field(..., description="Companion reply text")


class MessageSchema(MessageBaseSchema):
    """Complete message schema."""

    id: int = Field(..., description="Message ID")
    user_id: int = Field(..., description="User ID")
    companion_id: int = Field(..., description="Companion ID")
    created_at: datetime = Field(..., description="Message timestamp")

    model_config = ConfigDict(from_attributes=True)

    def to_instruction(self) -> Dict[str, str]:
        """Render as a role/content entry for the completion call."""
        return {"role": self.role, "content": self.content}
