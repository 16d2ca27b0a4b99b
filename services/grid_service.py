"""
Grid allocation state machine.

    available -> reserved -> confirmed
    reserved | confirmed -> available   (release, expiry, cancel)
    available -> confirmed              (giveaway only)

Routers call these functions; the conditional updates themselves live in
api.crud.box_crud.
"""
import logging
import random
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from api.crud import box_crud, game_crud
from api.crud.profile_crud import get_profile
from core.config import settings
from core.exceptions import NumbersAlreadyAssigned, ProfileNotFound
from core.validators import validate_game_open_for_sale, validate_numbers_not_assigned
from models.box import Box, BoxStatus
from models.game import Game
from models.profile import Profile
from services.payment_links import build_payment_links, payment_note
from services.pricing import (
    PriceTiers, calculate_pot, calculate_price, calculate_upgrade_price, payout_breakdown,
    price_tier_label
)

logger = logging.getLogger(__name__)

_system_random = random.SystemRandom()


def generate_digit_permutation(rng: Optional[random.Random] = None) -> List[int]:
    """Uniform random permutation of 0-9 (random.shuffle is Fisher-Yates)"""
    digits = list(range(10))
    (rng or _system_random).shuffle(digits)
    return digits


def amount_due(boxes: List[Box], tiers: PriceTiers) -> Tuple[int, int, int]:
    """
    What a user still owes for their reserved boxes.

    Confirmed paid boxes were already charged at their own tier, so the
    reserved ones are priced as an upgrade on top of them.
    Returns (paid_confirmed_count, reserved_count, amount).
    """
    paid_confirmed = sum(1 for b in boxes if b.status == BoxStatus.CONFIRMED and not b.is_free)
    reserved = sum(1 for b in boxes if b.status == BoxStatus.RESERVED)
    return paid_confirmed, reserved, calculate_upgrade_price(paid_confirmed, reserved, tiers)


def payment_links_for(user: Profile, reserved_count: int, amount: int) -> Tuple[Optional[str], Optional[str]]:
    return build_payment_links(amount, payment_note(user.full_name, reserved_count))


def claim_boxes_logic(db: Session, game: Game, user: Profile, box_ids: List[int]) -> dict:
    validate_game_open_for_sale(game)

    claimed = box_crud.claim_boxes(db, game.id, user.id, box_ids)
    logger.info(f"User {user.id} reserved {len(claimed)} boxes in game {game.id}")

    user_boxes = box_crud.get_user_boxes(db, game.id, user.id)
    _, reserved_count, due = amount_due(user_boxes, PriceTiers.for_game(game))
    web_url, app_url = payment_links_for(user, reserved_count, due)
    return {
        "game_id": game.id,
        "claimed": len(claimed),
        "box_ids": claimed,
        "amount_due": due,
        "payment_url": web_url,
        "payment_app_url": app_url,
        "message": f"Reserved {len(claimed)} boxes. Pay ${due} within {settings.reservation_ttl_minutes} minutes",
    }


def my_boxes_summary(db: Session, game: Game, user: Profile) -> dict:
    boxes = box_crud.get_user_boxes(db, game.id, user.id)
    for box in boxes:
        box.owner_name = user.full_name
    paid_confirmed, reserved_count, due = amount_due(boxes, PriceTiers.for_game(game))
    web_url, app_url = payment_links_for(user, reserved_count, due)
    return {
        "game_id": game.id,
        "user_id": user.id,
        "reserved": [b for b in boxes if b.status == BoxStatus.RESERVED],
        "confirmed": [b for b in boxes if b.status == BoxStatus.CONFIRMED],
        "paid_confirmed_count": paid_confirmed,
        "amount_due": due,
        "payment_url": web_url,
        "payment_app_url": app_url,
    }


def confirm_payment(db: Session, game: Game, user_id: str) -> List[int]:
    confirmed = box_crud.confirm_user_boxes(db, game.id, user_id)
    logger.info(f"Confirmed {len(confirmed)} boxes for user {user_id} in game {game.id}")
    return confirmed


def release_boxes(db: Session, game: Game, user_id: str) -> List[int]:
    released = box_crud.release_user_boxes(db, game.id, user_id)
    logger.info(f"Released {len(released)} reserved boxes for user {user_id} in game {game.id}")
    return released


def expire_stale_reservations(db: Session, ttl_minutes: Optional[int] = None) -> Dict[int, List[int]]:
    ttl_minutes = ttl_minutes if ttl_minutes is not None else settings.reservation_ttl_minutes
    expired = box_crud.expire_reservations(db, ttl_minutes)
    total = sum(len(ids) for ids in expired.values())
    if total:
        logger.info(f"Expired {total} reservations older than {ttl_minutes} minutes")
    return expired


def distribute_giveaway(db: Session, game: Game, allocations: Dict[str, int]) -> Dict[str, List[int]]:
    for user_id, count in allocations.items():
        if count > 0 and get_profile(db, user_id) is None:
            raise ProfileNotFound()

    given = box_crud.give_away_boxes(db, game.id, allocations)
    summary = ", ".join(f"{user_id}: {len(ids)}" for user_id, ids in given.items())
    logger.info(f"Gave away {sum(len(ids) for ids in given.values())} boxes in game {game.id} ({summary})")
    return given


def assign_numbers(db: Session, game: Game, rng: Optional[random.Random] = None) -> Game:
    """Generate row and column digits once; a second call needs reset_numbers first"""
    validate_numbers_not_assigned(game)

    row_numbers = generate_digit_permutation(rng)
    col_numbers = generate_digit_permutation(rng)
    if not game_crud.set_numbers(db, game.id, row_numbers, col_numbers):
        # Інший адмін встиг першим
        raise NumbersAlreadyAssigned()

    db.refresh(game)
    logger.info(f"Numbers assigned for game {game.id}: rows={row_numbers} cols={col_numbers}")
    return game


def reset_numbers(db: Session, game: Game) -> Game:
    game_crud.clear_numbers(db, game.id)
    db.refresh(game)
    logger.info(f"Numbers reset for game {game.id}; status back to selling")
    return game


def game_stats(db: Session, game: Game) -> dict:
    boxes = game_crud.get_game_boxes(db, game.id)
    tiers = PriceTiers.for_game(game)
    pot = calculate_pot(boxes, tiers)
    confirmed = [b for b in boxes if b.status == BoxStatus.CONFIRMED]
    amounts = payout_breakdown(game, pot=pot)
    return {
        "game_id": game.id,
        "available": sum(1 for b in boxes if b.status == BoxStatus.AVAILABLE),
        "reserved": sum(1 for b in boxes if b.status == BoxStatus.RESERVED),
        "confirmed": len(confirmed),
        "free": sum(1 for b in boxes if b.is_free),
        "pot": pot,
        "confirmed_revenue": calculate_pot(confirmed, tiers),
        "payouts": [
            {"quarter": q, "percentage": pct, "amount": amounts[q - 1]}
            for q, pct in enumerate(game.payouts, start=1)
        ],
    }


def profiles_with_boxes(db: Session, game: Game, profiles: List[Profile]) -> List[dict]:
    """Admin overview: each profile with box counts and what they still owe"""
    boxes = game_crud.get_game_boxes(db, game.id)
    tiers = PriceTiers.for_game(game)
    by_user: Dict[str, List[Box]] = {}
    for box in boxes:
        if box.user_id:
            by_user.setdefault(box.user_id, []).append(box)

    rows = []
    for profile in profiles:
        user_boxes = by_user.get(profile.id, [])
        _, reserved_count, due = amount_due(user_boxes, tiers)
        rows.append({
            "id": profile.id,
            "full_name": profile.full_name,
            "email": profile.email,
            "role": profile.role,
            "created_at": profile.created_at,
            "updated_at": profile.updated_at,
            "reserved_count": reserved_count,
            "confirmed_count": sum(1 for b in user_boxes if b.status == BoxStatus.CONFIRMED),
            "free_count": sum(1 for b in user_boxes if b.is_free),
            "amount_due": due,
        })
    return rows


def quote_price(game: Optional[Game], count: int) -> dict:
    return {
        "count": count,
        "price": calculate_price(count, PriceTiers.for_game(game)),
        "tier": price_tier_label(count),
    }
