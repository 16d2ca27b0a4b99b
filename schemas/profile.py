from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
from core.roles import UserRole


class ProfileBase(BaseModel):
    full_name: str
    email: Optional[str] = None


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=100)


class ProfileRead(ProfileBase):
    id: str
    role: UserRole
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ProfileWithBoxes(ProfileRead):
    """Профіль з підсумком по клітинках у грі (для адмінки)"""
    reserved_count: int = 0
    confirmed_count: int = 0
    free_count: int = 0
    amount_due: int = 0


class TokenData(BaseModel):
    user_id: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
