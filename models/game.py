from sqlalchemy import Column, Integer, String, DateTime, Boolean, Enum, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from db import Base
import enum


class GameStatus(str, enum.Enum):
    SELLING = "selling"
    NUMBERS_ASSIGNED = "numbers_assigned"
    LIVE = "live"
    FINAL = "final"


class Game(Base):
    __tablename__ = "games"

    id = Column(Integer, primary_key=True, index=True)
    season_year = Column(Integer, nullable=True)

    # Teams
    home_team = Column(String, nullable=False)
    home_abbreviation = Column(String, nullable=False)
    home_color = Column(String, nullable=True)
    home_alt_color = Column(String, nullable=True)
    away_team = Column(String, nullable=False)
    away_abbreviation = Column(String, nullable=False)
    away_color = Column(String, nullable=True)
    away_alt_color = Column(String, nullable=True)

    espn_game_id = Column(String, nullable=True)
    kickoff_time = Column(DateTime(timezone=True), nullable=True)

    # Pricing breakpoints (dollars)
    price_per_box = Column(Integer, default=5, nullable=False)
    price_10_boxes = Column(Integer, default=35, nullable=False)
    price_20_boxes = Column(Integer, default=60, nullable=False)

    # Payout percentages per quarter, sum to 100
    payout_q1 = Column(Integer, default=10, nullable=False)
    payout_q2 = Column(Integer, default=20, nullable=False)
    payout_q3 = Column(Integer, default=20, nullable=False)
    payout_q4 = Column(Integer, default=50, nullable=False)

    # Digits: row_numbers[row_index] -> home digit, col_numbers[col_index] -> away digit
    numbers_assigned = Column(Boolean, default=False, nullable=False)
    row_numbers = Column(JSON, nullable=True)
    col_numbers = Column(JSON, nullable=True)

    status = Column(Enum(GameStatus), default=GameStatus.SELLING, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    boxes = relationship("Box", back_populates="game", cascade="all, delete-orphan", lazy='select')
    quarter_results = relationship("QuarterResult", back_populates="game", cascade="all, delete-orphan", lazy='select')

    @property
    def payouts(self):
        return [self.payout_q1, self.payout_q2, self.payout_q3, self.payout_q4]

    def payout_percentage(self, quarter: int) -> int:
        return self.payouts[quarter - 1]
