from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Float, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from db import Base


class QuarterResult(Base):
    __tablename__ = "quarter_results"

    id = Column(Integer, primary_key=True, index=True)
    game_id = Column(Integer, ForeignKey("games.id"), nullable=False, index=True)
    quarter = Column(Integer, nullable=False)  # 1-4

    home_score = Column(Integer, nullable=False)
    away_score = Column(Integer, nullable=False)
    home_last_digit = Column(Integer, nullable=False)
    away_last_digit = Column(Integer, nullable=False)

    winning_box_id = Column(Integer, ForeignKey("boxes.id"), nullable=True)
    winning_user_id = Column(String, ForeignKey("profiles.id"), nullable=True)
    payout_amount = Column(Float, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    game = relationship("Game", back_populates="quarter_results")
    winning_box = relationship("Box")
    winner = relationship("Profile")

    # Один результат на чверть
    __table_args__ = (
        UniqueConstraint('game_id', 'quarter', name='unique_game_quarter'),
    )
