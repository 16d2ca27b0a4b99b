from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class QuarterScoreInput(BaseModel):
    home_score: int = Field(..., ge=0, description="Cumulative home score at end of quarter")
    away_score: int = Field(..., ge=0, description="Cumulative away score at end of quarter")


class QuarterResultRead(BaseModel):
    id: int
    game_id: int
    quarter: int
    home_score: int
    away_score: int
    home_last_digit: int
    away_last_digit: int
    winning_box_id: Optional[int] = None
    winning_user_id: Optional[str] = None
    winner_name: Optional[str] = None
    payout_amount: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
