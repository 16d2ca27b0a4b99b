from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
from models.quarter_result import QuarterResult


def get_quarter_result(db: Session, game_id: int, quarter: int) -> Optional[QuarterResult]:
    return db.query(QuarterResult).filter(
        QuarterResult.game_id == game_id,
        QuarterResult.quarter == quarter
    ).first()


def get_game_results(db: Session, game_id: int) -> List[QuarterResult]:
    results = db.query(QuarterResult).options(
        joinedload(QuarterResult.winner)
    ).filter(
        QuarterResult.game_id == game_id
    ).order_by(QuarterResult.quarter).all()

    for result in results:
        result.winner_name = result.winner.full_name if result.winner else None
    return results


def upsert_quarter_result(db: Session, game_id: int, quarter: int, **fields) -> QuarterResult:
    """One row per (game, quarter): re-recording a quarter overwrites it"""
    for attempt in range(2):
        result = get_quarter_result(db, game_id, quarter)
        if result is None:
            result = QuarterResult(game_id=game_id, quarter=quarter)
            db.add(result)
        for field, value in fields.items():
            setattr(result, field, value)
        try:
            db.commit()
            break
        except IntegrityError:
            # Інший запит вставив цю чверть одночасно - повторюємо як оновлення
            db.rollback()
            if attempt == 1:
                raise

    db.refresh(result)
    return result
