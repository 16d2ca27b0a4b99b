from typing import List, Optional
from sqlalchemy.orm import Session
from models.game import Game, GameStatus
from models.profile import Profile
from core.exceptions import (
    GameNotFound, ProfileNotFound, GameClosed, InvalidQuarter,
    NumbersAlreadyAssigned, NumbersNotAssigned
)

OPEN_FOR_SALE = (GameStatus.SELLING, GameStatus.NUMBERS_ASSIGNED)


def validate_game_exists(db: Session, game_id: int) -> Game:
    """Validate game exists and return it"""
    game = db.query(Game).filter(Game.id == game_id).first()
    if not game:
        raise GameNotFound()
    return game


def validate_profile_exists(db: Session, user_id: str) -> Profile:
    """Validate profile exists and return it"""
    profile = db.query(Profile).filter(Profile.id == user_id).first()
    if not profile:
        raise ProfileNotFound()
    return profile


def validate_game_open_for_sale(game: Game):
    """Клітинки можна бронювати тільки до старту гри"""
    if game.status not in OPEN_FOR_SALE:
        raise GameClosed(f"Box sales are closed: game is {game.status.value}")


def validate_quarter(quarter: int):
    if quarter not in (1, 2, 3, 4):
        raise InvalidQuarter(quarter)


def is_digit_permutation(numbers: Optional[List[int]]) -> bool:
    return numbers is not None and len(numbers) == 10 and sorted(numbers) == list(range(10))


def validate_numbers_not_assigned(game: Game):
    if game.numbers_assigned or game.row_numbers is not None or game.col_numbers is not None:
        raise NumbersAlreadyAssigned()


def validate_numbers_assigned(game: Game):
    """Both permutations must be present before any winner lookup"""
    if not game.numbers_assigned:
        raise NumbersNotAssigned()
    if not (is_digit_permutation(game.row_numbers) and is_digit_permutation(game.col_numbers)):
        raise NumbersNotAssigned("Stored numbers are not a permutation of 0-9")
