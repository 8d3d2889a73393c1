"""Companion schemas."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ConfigDict


class CompanionBaseSchema(BaseModel):
    """Base companion schema."""

    name: str = Field(..., min_length=1, max_length=40, description="Display name")
    persona: Dict[str, Any] = Field(
        default_factory=dict,
        description="Free-form persona attributes, passed to the model verbatim",
    )


class CompanionCreateSchema(CompanionBaseSchema):
    """Schema for creating a companion."""

    user_id: int = Field(..., description="Owning user ID")
    tone_level: Optional[int] = Field(
        default=None,
        ge=0,
        le=100,
        description="Tone level (0..100). Falls back to the configured default.",
    )


class ToneUpdateSchema(BaseModel):
    """Schema for the dedicated tone level update."""

    tone_level: int = Field(..., ge=0, le=100, description="Tone level (0..100)")


class CompanionSchema(CompanionBaseSchema):
    """Complete companion schema."""

    id: int = Field(..., description="Companion ID")
    user_id: int = Field(..., description="Owning user ID")
    tone_level: int = Field(..., ge=0, le=100, description="Tone level (0..100)")
    created_at: datetime = Field(..., description="Creation timestamp")

    model_config = ConfigDict(from_attributes=True)
