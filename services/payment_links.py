from typing import Optional, Tuple
from urllib.parse import urlencode

from core.config import settings


def payment_note(full_name: Optional[str], box_count: int) -> str:
    return f"{settings.payment_note_prefix} - {full_name or 'Guest'} - {box_count} boxes"


def build_payment_links(amount: int, note: str, username: Optional[str] = None) -> Tuple[Optional[str], Optional[str]]:
    """
    Venmo web link and app deep link for an out-of-band payment.
    Returns (None, None) when no recipient is configured or nothing is owed.
    """
    username = username if username is not None else settings.venmo_username
    if not username or amount <= 0:
        return None, None

    web_url = f"https://venmo.com/{username}?" + urlencode({"txn": "pay", "amount": amount, "note": note})
    app_url = "venmo://paycharge?" + urlencode({
        "txn": "pay",
        "recipients": username,
        "amount": amount,
        "note": note,
    })
    return web_url, app_url
