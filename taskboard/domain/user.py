"""User domain models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """User data transfer object. Never carries the password hash."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Unique user ID")
    name: str = Field(..., description="Display name of the user")
    email: str = Field(..., description="Lowercase email address")
    created: datetime = Field(..., alias="createdAt", description="Registration timestamp")
    updated: datetime = Field(..., alias="updatedAt", description="Last update timestamp")


class AuthResult(BaseModel):
    """Identity plus a freshly issued session token."""

    user: User
    token: str
