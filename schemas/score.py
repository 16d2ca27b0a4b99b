from pydantic import BaseModel
from typing import List, Optional
from enum import Enum


class GameState(str, Enum):
    PRE = "pre"
    IN = "in"
    POST = "post"


class QuarterScore(BaseModel):
    """Cumulative score at the end of a period (index 0 = Q1)."""
    home: int
    away: int


class ScoreSnapshot(BaseModel):
    game_state: GameState
    period: int = 0
    display_clock: str = ""
    home_score: int = 0
    away_score: int = 0
    home_team: str = ""
    away_team: str = ""
    home_logo: Optional[str] = None
    away_logo: Optional[str] = None
    last_play: Optional[str] = None
    down: Optional[str] = None
    possession: Optional[str] = None
    quarter_scores: List[QuarterScore] = []


class LeadingCell(BaseModel):
    row_index: int
    col_index: int
    box_id: Optional[int] = None
    user_id: Optional[str] = None
    owner_name: Optional[str] = None


class ScoreResponse(BaseModel):
    score: Optional[ScoreSnapshot] = None
    error: Optional[str] = None
    game_status: Optional[str] = None
    leading_cell: Optional[LeadingCell] = None
