from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime, timezone

from contestverse.models.states import UserRole


class UserCreate(BaseModel):
    """Schema for registering a user (role is always assigned by the server)"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    email: EmailStr
    display_name: Optional[str] = None
    photo_url: Optional[str] = Field(None, alias="photoURL")
    bio: Optional[str] = None


class ProfileUpdate(BaseModel):
    """Schema for profile updates (email and role cannot be changed here)"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    display_name: Optional[str] = None
    photo_url: Optional[str] = Field(None, alias="photoURL")
    bio: Optional[str] = None


class RoleUpdate(BaseModel):
    """Schema for an admin changing a user's role"""
    role: UserRole


class UserInDB(BaseModel):
    """Schema for user in database"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)

    email: EmailStr
    role: UserRole = UserRole.USER
    display_name: Optional[str] = None
    photo_url: Optional[str] = Field(None, alias="photoURL")
    bio: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
