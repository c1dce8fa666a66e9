from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional

from contestverse.models.states import CreatorStatus


class CreatorApply(BaseModel):
    """Schema for applying to become a contest creator"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: Optional[str] = None
    photo_url: Optional[str] = Field(None, alias="photoURL")
    bio: Optional[str] = None


class CreatorReview(BaseModel):
    """Schema for an admin decision on a creator application"""
    status: CreatorStatus
