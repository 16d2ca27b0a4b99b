from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional
from datetime import datetime
from models.game import GameStatus


class GameBase(BaseModel):
    season_year: Optional[int] = None
    home_team: str = Field(..., min_length=1, max_length=100)
    home_abbreviation: str = Field(..., min_length=1, max_length=10)
    home_color: Optional[str] = None
    home_alt_color: Optional[str] = None
    away_team: str = Field(..., min_length=1, max_length=100)
    away_abbreviation: str = Field(..., min_length=1, max_length=10)
    away_color: Optional[str] = None
    away_alt_color: Optional[str] = None
    espn_game_id: Optional[str] = None
    kickoff_time: Optional[datetime] = None
    price_per_box: int = Field(5, ge=0)
    price_10_boxes: int = Field(35, ge=0)
    price_20_boxes: int = Field(60, ge=0)
    payout_q1: int = Field(10, ge=0, le=100)
    payout_q2: int = Field(20, ge=0, le=100)
    payout_q3: int = Field(20, ge=0, le=100)
    payout_q4: int = Field(50, ge=0, le=100)


class GameCreate(GameBase):
    @model_validator(mode="after")
    def validate_payouts_sum(self):
        # Перевіряємо всі чотири чверті, включно зі значеннями за замовчуванням
        total = self.payout_q1 + self.payout_q2 + self.payout_q3 + self.payout_q4
        if total != 100:
            raise ValueError(f"Payout percentages must sum to 100, got {total}")
        return self


class GameRead(GameBase):
    id: int
    numbers_assigned: bool
    row_numbers: Optional[List[int]] = None
    col_numbers: Optional[List[int]] = None
    status: GameStatus
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class NumbersResponse(BaseModel):
    game_id: int
    row_numbers: Optional[List[int]] = None
    col_numbers: Optional[List[int]] = None
    status: GameStatus
    message: str


class PayoutLine(BaseModel):
    quarter: int
    percentage: int
    amount: float


class GameStats(BaseModel):
    game_id: int
    available: int
    reserved: int
    confirmed: int
    free: int
    pot: int
    confirmed_revenue: int
    payouts: List[PayoutLine]


class PriceQuote(BaseModel):
    count: int
    price: int
    tier: str
