"""
Quarter settlement: which cell wins a quarter and what it pays.

The grid row for the home team is the position of the home score's last digit
in ``row_numbers``; the column is the position of the away digit in
``col_numbers``. Payout is the quarter's percentage of the per-user pot.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from api.crud.box_crud import get_box_at
from api.crud.game_crud import get_game_boxes
from api.crud.quarter_result_crud import upsert_quarter_result
from core.exceptions import NumbersNotAssigned
from core.validators import validate_numbers_assigned, validate_quarter
from models.game import Game
from models.quarter_result import QuarterResult
from services.pricing import PriceTiers, calculate_pot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settlement:
    quarter: int
    home_score: int
    away_score: int
    home_last_digit: int
    away_last_digit: int
    row_index: int
    col_index: int
    payout_amount: float


def resolve_winning_cell(
    row_numbers: Optional[List[int]],
    col_numbers: Optional[List[int]],
    home_score: int,
    away_score: int,
) -> Tuple[int, int]:
    if not row_numbers or not col_numbers:
        raise NumbersNotAssigned()

    home_digit = home_score % 10
    away_digit = away_score % 10
    try:
        row_index = list(row_numbers).index(home_digit)
        col_index = list(col_numbers).index(away_digit)
    except ValueError:
        raise NumbersNotAssigned(f"Digits {home_digit}/{away_digit} are missing from the assigned numbers")
    return row_index, col_index


def calculate_payout(pot: int, percentage: int) -> float:
    return round(pot * percentage / 100, 2)


def settle_quarter(game: Game, boxes, quarter: int, home_score: int, away_score: int) -> Settlement:
    """Pure part of settlement: no session, no writes."""
    validate_quarter(quarter)
    if home_score < 0 or away_score < 0:
        raise ValueError("Scores cannot be negative")
    validate_numbers_assigned(game)

    row_index, col_index = resolve_winning_cell(game.row_numbers, game.col_numbers, home_score, away_score)
    pot = calculate_pot(boxes, PriceTiers.for_game(game))
    return Settlement(
        quarter=quarter,
        home_score=home_score,
        away_score=away_score,
        home_last_digit=home_score % 10,
        away_last_digit=away_score % 10,
        row_index=row_index,
        col_index=col_index,
        payout_amount=calculate_payout(pot, game.payout_percentage(quarter)),
    )


def record_quarter(db: Session, game: Game, quarter: int, home_score: int, away_score: int) -> QuarterResult:
    """Resolve the winner for a quarter and upsert the result row"""
    boxes = get_game_boxes(db, game.id)
    settlement = settle_quarter(game, boxes, quarter, home_score, away_score)

    winning_box = get_box_at(db, game.id, settlement.row_index, settlement.col_index)
    result = upsert_quarter_result(
        db,
        game.id,
        quarter,
        home_score=settlement.home_score,
        away_score=settlement.away_score,
        home_last_digit=settlement.home_last_digit,
        away_last_digit=settlement.away_last_digit,
        winning_box_id=winning_box.id if winning_box else None,
        winning_user_id=winning_box.user_id if winning_box else None,
        payout_amount=settlement.payout_amount,
    )
    result.winner_name = result.winner.full_name if result.winner else None

    logger.info(
        f"Game {game.id} Q{quarter} recorded: {home_score}-{away_score} -> "
        f"cell ({settlement.row_index}, {settlement.col_index}), "
        f"winner={result.winning_user_id}, payout=${settlement.payout_amount}"
    )
    return result
