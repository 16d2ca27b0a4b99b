"""
Сервіс для відправки WebSocket повідомлень про зміни в грі.
"""
import logging
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from services.websocket_manager import websocket_manager
from api.crud.box_crud import get_boxes_by_ids
from schemas.box import BoxRead
from schemas.game import GameRead
from schemas.quarter_result import QuarterResultRead
from schemas.score import ScoreResponse
from db import SessionLocal

logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return datetime.utcnow().isoformat() + "Z"


async def notify_boxes_changed(game_id: int, box_ids: Iterable[int], db: Optional[Session] = None):
    """Розіслати повні рядки змінених клітинок"""
    box_ids = list(box_ids)
    if not box_ids or not websocket_manager.get_connection_count(game_id):
        return

    # Створюємо нову сесію якщо не передана
    if db is None:
        db = SessionLocal()
        should_close = True
    else:
        should_close = False

    try:
        boxes = get_boxes_by_ids(db, box_ids)
        message = {
            "type": "boxes_changed",
            "game_id": game_id,
            "boxes": [BoxRead.model_validate(box).model_dump(mode="json") for box in boxes],
            "timestamp": _timestamp(),
        }
        await websocket_manager.broadcast_to_game(game_id, message)
        logger.info(f"Sent boxes_changed for game {game_id} ({len(boxes)} boxes)")
    finally:
        if should_close:
            db.close()


async def notify_game_updated(game):
    message = {
        "type": "game_updated",
        "game_id": game.id,
        "game": GameRead.model_validate(game).model_dump(mode="json"),
        "timestamp": _timestamp(),
    }
    await websocket_manager.broadcast_to_game(game.id, message)
    logger.info(f"Sent game_updated for game {game.id} (status={game.status.value})")


async def notify_quarter_recorded(result):
    message = {
        "type": "quarter_recorded",
        "game_id": result.game_id,
        "result": QuarterResultRead.model_validate(result).model_dump(mode="json"),
        "timestamp": _timestamp(),
    }
    await websocket_manager.broadcast_to_game(result.game_id, message)
    logger.info(f"Sent quarter_recorded for game {result.game_id} Q{result.quarter}")


async def notify_score_updated(game_id: int, score: ScoreResponse):
    message = {
        "type": "score_updated",
        "game_id": game_id,
        **score.model_dump(mode="json"),
        "timestamp": _timestamp(),
    }
    await websocket_manager.broadcast_to_game(game_id, message)
