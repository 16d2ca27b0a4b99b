import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from api.deps.db import get_db
from core.config import settings
from schemas.box import ExpireResponse
from services import grid_service, notification_service

router = APIRouter(prefix="/cron", tags=["cron"])


def verify_cron_secret(authorization: Optional[str] = Header(None)):
    """Якщо CRON_SECRET задано, планувальник має передати його як Bearer токен"""
    if not settings.cron_secret:
        return
    expected = f"Bearer {settings.cron_secret}"
    if not authorization or not secrets.compare_digest(authorization, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid cron secret"
        )


@router.api_route("/expire-reservations", methods=["GET", "POST"], response_model=ExpireResponse)
async def expire_reservations(
    db: Session = Depends(get_db),
    _: None = Depends(verify_cron_secret)
):
    """Expire reservations older than the configured TTL (10 minutes by default)"""
    expired = grid_service.expire_stale_reservations(db)
    for game_id, box_ids in expired.items():
        await notification_service.notify_boxes_changed(game_id, box_ids, db)
    return {"expired": sum(len(ids) for ids in expired.values())}
