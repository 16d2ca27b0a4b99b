"""
Box pricing with volume discounts.

Tiers: 20 boxes for $60, 10 boxes for $35, single boxes $5. Discounts apply per
owner, so the pot is the sum of each owner's own price, not the price of the
pool's total box count.
"""
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List

from models.box import BoxStatus


@dataclass(frozen=True)
class PriceTiers:
    per_box: int = 5
    ten_pack: int = 35
    twenty_pack: int = 60

    @classmethod
    def for_game(cls, game) -> "PriceTiers":
        if game is None:
            return cls()
        return cls(
            per_box=game.price_per_box,
            ten_pack=game.price_10_boxes,
            twenty_pack=game.price_20_boxes,
        )


DEFAULT_TIERS = PriceTiers()


def calculate_price(count: int, tiers: PriceTiers = DEFAULT_TIERS) -> int:
    if count < 0:
        raise ValueError("Box count cannot be negative")
    if count >= 20:
        return (count // 20) * tiers.twenty_pack + calculate_price(count % 20, tiers)
    if count >= 10:
        return (count // 10) * tiers.ten_pack + (count % 10) * tiers.per_box
    return count * tiers.per_box


def price_tier_label(count: int) -> str:
    if count >= 20:
        return "20-box discount"
    if count >= 10:
        return "10-box discount"
    return "single boxes"


def _status_value(status) -> str:
    return status.value if hasattr(status, "value") else str(status)


def paid_counts_by_user(boxes: Iterable) -> Dict[str, int]:
    """Count reserved/confirmed, non-free boxes per owner."""
    counts: Dict[str, int] = defaultdict(int)
    for box in boxes:
        status = _status_value(box.status)
        if box.user_id and status in (BoxStatus.RESERVED.value, BoxStatus.CONFIRMED.value) and not box.is_free:
            counts[box.user_id] += 1
    return dict(counts)


def calculate_pot(boxes: Iterable, tiers: PriceTiers = DEFAULT_TIERS) -> int:
    """
    Actual pot: sum of per-user prices.
    Free (giveaway) boxes are excluded since no money was collected for them.
    """
    return sum(calculate_price(count, tiers) for count in paid_counts_by_user(boxes).values())


def calculate_upgrade_price(existing_count: int, additional_count: int, tiers: PriceTiers = DEFAULT_TIERS) -> int:
    """
    Incremental charge when a user who already paid for `existing_count` boxes adds more.

    10 confirmed ($35 paid) + 10 new -> price(20) - price(10) = $60 - $35 = $25.
    """
    if additional_count <= 0:
        return 0
    total_price = calculate_price(existing_count + additional_count, tiers)
    already_paid = calculate_price(existing_count, tiers)
    return max(0, total_price - already_paid)


def payout_breakdown(game, pot: int) -> List[float]:
    """Dollar payout for each quarter given the pot."""
    return [round(pot * pct / 100, 2) for pct in game.payouts]
