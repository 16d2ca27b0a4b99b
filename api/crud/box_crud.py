"""
Box mutations.

Every write is a single conditional UPDATE guarded on the current status; the
affected row count, not a prior read, decides whether a transition happened.
"""
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload
from models.box import Box, BoxStatus
from models.quarter_result import QuarterResult
from core.exceptions import BoxesUnavailable, NotEnoughBoxes


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_boxes_by_ids(db: Session, box_ids: List[int]) -> List[Box]:
    if not box_ids:
        return []
    boxes = db.query(Box).options(joinedload(Box.owner)).filter(
        Box.id.in_(box_ids)
    ).order_by(Box.row_index, Box.col_index).all()
    for box in boxes:
        box.owner_name = box.owner.full_name if box.owner else None
    return boxes


def get_box_at(db: Session, game_id: int, row_index: int, col_index: int) -> Optional[Box]:
    return db.query(Box).options(joinedload(Box.owner)).filter(
        Box.game_id == game_id,
        Box.row_index == row_index,
        Box.col_index == col_index
    ).first()


def get_user_boxes(db: Session, game_id: int, user_id: str) -> List[Box]:
    return db.query(Box).filter(
        Box.game_id == game_id,
        Box.user_id == user_id
    ).order_by(Box.row_index, Box.col_index).all()


def _ids_where(db: Session, *criteria) -> List[int]:
    return [row[0] for row in db.query(Box.id).filter(*criteria).all()]


def claim_boxes(db: Session, game_id: int, user_id: str, box_ids: List[int], now: Optional[datetime] = None) -> List[int]:
    """
    available -> reserved for every requested box, or nothing at all.

    If another claimant won the race for any box the update touches fewer rows
    than requested; the transaction is rolled back and BoxesUnavailable lists
    the boxes that could not be taken.
    """
    now = now or utcnow()
    requested = list(box_ids)

    updated = db.query(Box).filter(
        Box.game_id == game_id,
        Box.id.in_(requested),
        Box.status == BoxStatus.AVAILABLE
    ).update({
        Box.user_id: user_id,
        Box.status: BoxStatus.RESERVED,
        Box.reserved_at: now,
        Box.confirmed_at: None,
        Box.is_free: False,
    }, synchronize_session=False)

    if updated != len(requested):
        db.rollback()
        still_available = set(_ids_where(
            db,
            Box.game_id == game_id,
            Box.id.in_(requested),
            Box.status == BoxStatus.AVAILABLE
        ))
        conflicts = [box_id for box_id in requested if box_id not in still_available]
        raise BoxesUnavailable(conflicts, requested=len(requested), claimed=updated)

    db.commit()
    return requested


def confirm_user_boxes(db: Session, game_id: int, user_id: str, now: Optional[datetime] = None) -> List[int]:
    """reserved -> confirmed for one user's boxes in one game"""
    now = now or utcnow()
    criteria = (
        Box.game_id == game_id,
        Box.user_id == user_id,
        Box.status == BoxStatus.RESERVED,
    )
    candidate_ids = _ids_where(db, *criteria)
    if not candidate_ids:
        return []

    db.query(Box).filter(Box.id.in_(candidate_ids), *criteria).update({
        Box.status: BoxStatus.CONFIRMED,
        Box.confirmed_at: now,
    }, synchronize_session=False)
    db.commit()
    return _ids_where(db, Box.id.in_(candidate_ids), Box.status == BoxStatus.CONFIRMED)


def release_user_boxes(db: Session, game_id: int, user_id: str) -> List[int]:
    """reserved -> available for one user's boxes; confirmed boxes are untouched"""
    criteria = (
        Box.game_id == game_id,
        Box.user_id == user_id,
        Box.status == BoxStatus.RESERVED,
    )
    candidate_ids = _ids_where(db, *criteria)
    if not candidate_ids:
        return []

    db.query(Box).filter(Box.id.in_(candidate_ids), *criteria).update({
        Box.user_id: None,
        Box.status: BoxStatus.AVAILABLE,
        Box.reserved_at: None,
        Box.confirmed_at: None,
    }, synchronize_session=False)
    db.commit()
    return _ids_where(db, Box.id.in_(candidate_ids), Box.status == BoxStatus.AVAILABLE)


def expire_reservations(db: Session, ttl_minutes: int, now: Optional[datetime] = None) -> Dict[int, List[int]]:
    """
    reserved -> available for any reservation older than ttl_minutes, regardless of owner.

    Returns {game_id: [box ids]} for the boxes that were actually expired.
    """
    now = now or utcnow()
    cutoff = now - timedelta(minutes=ttl_minutes)
    criteria = (
        Box.status == BoxStatus.RESERVED,
        Box.reserved_at < cutoff,
    )
    candidates = db.query(Box.id, Box.game_id).filter(*criteria).all()
    if not candidates:
        return {}

    candidate_ids = [box_id for box_id, _ in candidates]
    db.query(Box).filter(Box.id.in_(candidate_ids), *criteria).update({
        Box.user_id: None,
        Box.status: BoxStatus.AVAILABLE,
        Box.reserved_at: None,
    }, synchronize_session=False)
    db.commit()

    expired_ids = set(_ids_where(db, Box.id.in_(candidate_ids), Box.status == BoxStatus.AVAILABLE))
    by_game: Dict[int, List[int]] = {}
    for box_id, game_id in candidates:
        if box_id in expired_ids:
            by_game.setdefault(game_id, []).append(box_id)
    return by_game


def give_away_boxes(db: Session, game_id: int, allocations: Dict[str, int], now: Optional[datetime] = None) -> Dict[str, List[int]]:
    """
    Hand currently available boxes straight to confirmed, free of charge.

    Each count is the number of free boxes the user should end up holding in
    this game, so repeating the same allocation gives nothing more. Boxes are
    taken in grid order. The whole distribution is one transaction: if any
    batch loses a race, nothing is given away.
    """
    now = now or utcnow()
    held = dict(db.query(Box.user_id, func.count(Box.id)).filter(
        Box.game_id == game_id,
        Box.user_id.in_(list(allocations)),
        Box.is_free == True  # noqa: E712
    ).group_by(Box.user_id).all())
    missing = {user_id: count - held.get(user_id, 0) for user_id, count in allocations.items()}
    total = sum(count for count in missing.values() if count > 0)
    available_ids = _ids_where(db, Box.game_id == game_id, Box.status == BoxStatus.AVAILABLE)
    if total > len(available_ids):
        raise NotEnoughBoxes(total, len(available_ids))

    # Стабільний порядок: по рядках, потім по стовпцях
    ordered_ids = [row[0] for row in db.query(Box.id).filter(
        Box.id.in_(available_ids)
    ).order_by(Box.row_index, Box.col_index).all()]

    given: Dict[str, List[int]] = {}
    cursor = 0
    for user_id, count in missing.items():
        if count <= 0:
            continue
        batch_ids = ordered_ids[cursor:cursor + count]
        cursor += count

        updated = db.query(Box).filter(
            Box.id.in_(batch_ids),
            Box.status == BoxStatus.AVAILABLE
        ).update({
            Box.user_id: user_id,
            Box.status: BoxStatus.CONFIRMED,
            Box.reserved_at: now,
            Box.confirmed_at: now,
            Box.is_free: True,
        }, synchronize_session=False)

        if updated != len(batch_ids):
            db.rollback()
            raise BoxesUnavailable(requested=total, claimed=cursor - count + updated)
        given[user_id] = batch_ids

    db.commit()
    return given


def detach_user(db: Session, user_id: str) -> Dict[int, List[int]]:
    """
    Unlink a user from every game before their profile is deleted.

    Reserved boxes go back to available. Confirmed boxes stay confirmed (they
    were paid for) but lose their owner. Quarter results keep the payout but
    lose the winning user.
    """
    touched = db.query(Box.id, Box.game_id).filter(Box.user_id == user_id).all()

    db.query(Box).filter(
        Box.user_id == user_id,
        Box.status == BoxStatus.RESERVED
    ).update({
        Box.user_id: None,
        Box.status: BoxStatus.AVAILABLE,
        Box.reserved_at: None,
        Box.confirmed_at: None,
    }, synchronize_session=False)

    db.query(Box).filter(
        Box.user_id == user_id,
        Box.status == BoxStatus.CONFIRMED
    ).update({Box.user_id: None}, synchronize_session=False)

    db.query(QuarterResult).filter(
        QuarterResult.winning_user_id == user_id
    ).update({QuarterResult.winning_user_id: None}, synchronize_session=False)

    by_game: Dict[int, List[int]] = {}
    for box_id, game_id in touched:
        by_game.setdefault(game_id, []).append(box_id)
    return by_game
