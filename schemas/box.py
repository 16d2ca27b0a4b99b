from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Dict, List, Optional
from datetime import datetime
from models.box import BoxStatus


class BoxRead(BaseModel):
    id: int
    game_id: int
    row_index: int
    col_index: int
    user_id: Optional[str] = None
    owner_name: Optional[str] = None
    status: BoxStatus
    reserved_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    is_free: bool = False

    model_config = ConfigDict(from_attributes=True)


class ClaimRequest(BaseModel):
    box_ids: List[int] = Field(..., min_length=1, max_length=100)

    @field_validator('box_ids')
    @classmethod
    def validate_unique_boxes(cls, v):
        if len(v) != len(set(v)):
            raise ValueError("All box ids must be unique")
        return v


class ClaimResponse(BaseModel):
    game_id: int
    claimed: int
    box_ids: List[int]
    amount_due: int
    payment_url: Optional[str] = None
    payment_app_url: Optional[str] = None
    message: str


class TransitionResponse(BaseModel):
    """Результат умовного оновлення: скільки клітинок змінило статус"""
    game_id: int
    user_id: Optional[str] = None
    updated: int
    message: str


class GiveawayRequest(BaseModel):
    allocations: Dict[str, int] = Field(..., min_length=1)

    @field_validator('allocations')
    @classmethod
    def validate_counts(cls, v):
        for user_id, count in v.items():
            if count < 0:
                raise ValueError(f"Allocation for {user_id} cannot be negative")
        if sum(v.values()) == 0:
            raise ValueError("Nothing to give away")
        return v


class GiveawayResponse(BaseModel):
    game_id: int
    total: int
    allocations: Dict[str, int]
    message: str


class MyBoxesSummary(BaseModel):
    game_id: int
    user_id: str
    reserved: List[BoxRead]
    confirmed: List[BoxRead]
    paid_confirmed_count: int
    amount_due: int
    payment_url: Optional[str] = None
    payment_app_url: Optional[str] = None


class ExpireResponse(BaseModel):
    expired: int
