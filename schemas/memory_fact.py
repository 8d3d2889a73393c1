"""Memory fact schemas (user-editable facts scoped to a companion)."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict


class MemoryFactBaseSchema(BaseModel):
    """Base memory fact schema."""

    key: str = Field(..., min_length=1, max_length=60, description="Fact key, unique per companion")
    value: str = Field(..., min_length=1, max_length=500, description="Fact value")


class MemoryFactUpsertSchema(MemoryFactBaseSchema):
    """Schema for upserting a fact by (companion_id, key)."""

    companion_id: int = Field(..., description="Companion ID")
    importance: Optional[int] = Field(
        default=None,
        ge=0,
        le=100,
        description="Ranking weight (0-100). Omitted keeps the stored value, or 50 for new facts.",
    )


class MemoryFactSchema(MemoryFactBaseSchema):
    """Complete memory fact schema."""

    id: int = Field(..., description="Memory ID")
    companion_id: int = Field(..., description="Companion ID")
    importance: int = Field(..., ge=0, le=100, description="Ranking weight (0-100)")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)
