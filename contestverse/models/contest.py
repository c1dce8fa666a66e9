from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime

from contestverse.models.states import ApprovalStatus


class ContestCreate(BaseModel):
    """Schema for proposing a contest"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=200)
    image: Optional[str] = None
    description: Optional[str] = None
    price: float = Field(0, ge=0, description="Entry fee in major currency units")
    prize_money: Optional[float] = Field(None, ge=0)
    task_instruction: Optional[str] = None
    contest_type: Optional[str] = None
    deadline: datetime
    creator_name: Optional[str] = None


class ContestUpdate(BaseModel):
    """
    Schema for a creator editing their own pending contest.
    Ownership, approval, participant and winner fields are not editable.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    image: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    prize_money: Optional[float] = Field(None, ge=0)
    task_instruction: Optional[str] = None
    contest_type: Optional[str] = None
    deadline: Optional[datetime] = None


class ContestApproval(BaseModel):
    """Schema for admin approval decisions"""
    status: ApprovalStatus
