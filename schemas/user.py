"""User schemas."""

from datetime import datetime

from pydantic import BaseModel, Field, ConfigDict


class UserBaseSchema(BaseModel):
    """Base user schema with common fields."""

    email: str = Field(
        ...,
        max_length=255,
        pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
        description="User email address",
    )


class UserCreateSchema(UserBaseSchema):
    """Schema for creating (or fetching) a user by email."""

    pass


class UserSchema(UserBaseSchema):
    """Complete user schema with all fields."""

    id: int = Field(..., description="Internal user ID")
    created_at: datetime = Field(..., description="User creation timestamp")

    model_config = ConfigDict(from_attributes=True)
