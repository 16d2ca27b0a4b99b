"""
Створити гру з сіткою 10x10 (ціни та виплати за замовчуванням: $5/$35/$60, 10/20/20/50%)
"""
import sys
from datetime import datetime

from db import Base, SessionLocal, engine
from api.crud.game_crud import create_game
from schemas.game import GameCreate
from models.profile import Profile  # noqa: F401
from models.game import Game  # noqa: F401
from models.box import Box  # noqa: F401
from models.quarter_result import QuarterResult  # noqa: F401


def create_default_game(espn_game_id: str = None):
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        game = create_game(db, GameCreate(
            season_year=2025,
            home_team="Seattle Seahawks",
            home_abbreviation="SEA",
            home_color="#002244",
            home_alt_color="#69BE28",
            away_team="New England Patriots",
            away_abbreviation="NE",
            away_color="#002244",
            away_alt_color="#C60C30",
            espn_game_id=espn_game_id,
            kickoff_time=datetime.fromisoformat("2026-02-08T23:30:00+00:00"),
        ))
        print(f"✅ Гру створено! ID: {game.id}, клітинок: {len(game.boxes)}")
    finally:
        db.close()


if __name__ == "__main__":
    create_default_game(sys.argv[1] if len(sys.argv) > 1 else None)
