from typing import List, Sequence
from sqlalchemy.orm import Session, joinedload
from models.game import Game, GameStatus
from models.box import Box, GRID_SIZE
from schemas.game import GameCreate


def create_game(db: Session, game_data: GameCreate) -> Game:
    """Create a game together with its full 10x10 grid of available boxes"""
    db_game = Game(**game_data.model_dump())
    db.add(db_game)
    db.flush()

    for row_index in range(GRID_SIZE):
        for col_index in range(GRID_SIZE):
            db.add(Box(game_id=db_game.id, row_index=row_index, col_index=col_index))

    db.commit()
    db.refresh(db_game)
    return db_game


def get_games(db: Session) -> List[Game]:
    return db.query(Game).order_by(Game.id).all()


def get_games_with_espn_id(db: Session) -> List[Game]:
    return db.query(Game).filter(
        Game.espn_game_id.isnot(None),
        Game.status != GameStatus.FINAL
    ).all()


def get_game_boxes(db: Session, game_id: int) -> List[Box]:
    boxes = db.query(Box).options(
        joinedload(Box.owner)
    ).filter(
        Box.game_id == game_id
    ).order_by(Box.row_index, Box.col_index).all()

    # Add owner name for the grid
    for box in boxes:
        box.owner_name = box.owner.full_name if box.owner else None
    return boxes


def set_numbers(db: Session, game_id: int, row_numbers: List[int], col_numbers: List[int]) -> bool:
    """Write both permutations once; guarded by numbers_assigned = false"""
    updated = db.query(Game).filter(
        Game.id == game_id,
        Game.numbers_assigned == False  # noqa: E712
    ).update({
        Game.row_numbers: list(row_numbers),
        Game.col_numbers: list(col_numbers),
        Game.numbers_assigned: True,
    }, synchronize_session=False)

    if updated:
        # Статус рухається тільки вперед: selling -> numbers_assigned
        db.query(Game).filter(
            Game.id == game_id,
            Game.status == GameStatus.SELLING
        ).update({Game.status: GameStatus.NUMBERS_ASSIGNED}, synchronize_session=False)

    db.commit()
    return bool(updated)


def clear_numbers(db: Session, game_id: int) -> bool:
    updated = db.query(Game).filter(Game.id == game_id).update({
        Game.row_numbers: None,
        Game.col_numbers: None,
        Game.numbers_assigned: False,
        Game.status: GameStatus.SELLING,
    }, synchronize_session=False)
    db.commit()
    return bool(updated)


def advance_status(db: Session, game_id: int, new_status: GameStatus, allowed_from: Sequence[GameStatus]) -> bool:
    """Conditional status move; no-op unless the current status is in allowed_from"""
    updated = db.query(Game).filter(
        Game.id == game_id,
        Game.status.in_(list(allowed_from))
    ).update({Game.status: new_status}, synchronize_session=False)
    db.commit()
    return bool(updated)
