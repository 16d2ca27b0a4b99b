from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from db import Base
import enum


class BoxStatus(str, enum.Enum):
    AVAILABLE = "available"
    RESERVED = "reserved"
    CONFIRMED = "confirmed"


GRID_SIZE = 10


class Box(Base):
    __tablename__ = "boxes"

    id = Column(Integer, primary_key=True, index=True)
    game_id = Column(Integer, ForeignKey("games.id"), nullable=False, index=True)
    row_index = Column(Integer, nullable=False)  # 0-9, home digit via game.row_numbers
    col_index = Column(Integer, nullable=False)  # 0-9, away digit via game.col_numbers

    # Owner is null iff status is AVAILABLE
    user_id = Column(String, ForeignKey("profiles.id"), nullable=True, index=True)
    status = Column(Enum(BoxStatus), default=BoxStatus.AVAILABLE, nullable=False, index=True)
    reserved_at = Column(DateTime(timezone=True), nullable=True)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    is_free = Column(Boolean, default=False, nullable=False)

    # Relationships
    game = relationship("Game", back_populates="boxes")
    owner = relationship("Profile", back_populates="boxes")

    __table_args__ = (
        UniqueConstraint('game_id', 'row_index', 'col_index', name='unique_game_cell'),
    )
