"""Recap schemas."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, ConfigDict


class RecapBaseSchema(BaseModel):
    """Base recap schema."""

    summary: str = Field(..., description="Generated summary text")
    range_start: datetime = Field(..., description="Timestamp of the first summarized message")
    range_end: datetime = Field(..., description="Timestamp of the last summarized message")


class RecapSchema(RecapBaseSchema):
    """Complete recap schema."""

    id: int = Field(..., description="Recap ID")
    companion_id: int = Field(..., description="Companion ID")
    created_at: datetime = Field(..., description="Creation timestamp")

    model_config = ConfigDict(from_attributes=True)


class RecapRequestSchema(BaseModel):
    """Schema for triggering a single-companion recap."""

    companion_id: int = Field(..., description="Companion ID")


class RecapOutcomeSchema(BaseModel):
    """Result of running the recap pipeline for one companion."""

    status: Literal["created", "skipped"] = Field(..., description="What happened")
    reason: Optional[str] = Field(default=None, description="Why the companion was skipped")
    recap: Optional[RecapSchema] = Field(default=None, description="The new recap, if created")

    @property
    def created(self) -> bool:
        return self.status == "created"


class RecapBatchResultSchema(BaseModel):
    """Aggregate counts from a batch recap run."""

    created: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)
