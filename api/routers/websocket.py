from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Query
from fastapi import HTTPException, status
from core.auth import verify_token
from models.game import Game
from services.websocket_manager import websocket_manager
from db import SessionLocal
import logging
import asyncio
import json
from datetime import datetime

logger = logging.getLogger(__name__)

router = APIRouter()

HEARTBEAT_INTERVAL = 30  # секунди для ping
HEARTBEAT_TIMEOUT = 60


async def send_error(websocket: WebSocket, error_type: str, message: str, code: int = 1008):
    """Відправити повідомлення про помилку перед закриттям"""
    try:
        await websocket.accept()
        await websocket.send_json({
            "type": "error",
            "error_type": error_type,
            "message": message,
            "code": code,
            "timestamp": datetime.utcnow().isoformat() + "Z"
        })
    except Exception as e:
        logger.debug(f"Could not send websocket error: {e}")
    finally:
        await websocket.close(code=code, reason=message)


@router.websocket("/ws/games/{game_id}")
async def game_websocket(
    websocket: WebSocket,
    game_id: int,
    token: str = Query(None)
):
    """
    WebSocket підписка на зміни однієї гри.
    Сітка публічна, тому токен необов'язковий; якщо переданий - має бути валідним.

    Використання:
    - Підключення: ws://host/ws/games/1?token=JWT_TOKEN
    - Повідомлення: boxes_changed, game_updated, quarter_recorded, score_updated
    """
    user_id = None
    if token:
        credentials_exception = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
        try:
            user_id = verify_token(token, credentials_exception).user_id
        except HTTPException as e:
            await send_error(websocket, "authentication_error", str(e.detail))
            return

    db = SessionLocal()
    try:
        game = db.query(Game).filter(Game.id == game_id).first()
        game_status = game.status.value if game else None
    finally:
        db.close()

    if game_status is None:
        await send_error(websocket, "not_found", "Game not found")
        return

    await websocket_manager.connect(websocket, game_id, user_id)

    try:
        await websocket.send_json({
            "type": "connected",
            "game_id": game_id,
            "user_id": user_id,
            "game_status": game_status,
            "message": "Subscribed to game updates.",
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "heartbeat_interval": HEARTBEAT_INTERVAL
        })

        last_ping = datetime.utcnow()

        # Очікуємо повідомлень від клієнта
        while True:
            try:
                data = await asyncio.wait_for(websocket.receive_text(), timeout=5.0)
            except asyncio.TimeoutError:
                # Перевірка heartbeat
                if (datetime.utcnow() - last_ping).total_seconds() > HEARTBEAT_TIMEOUT:
                    logger.warning(f"Heartbeat timeout for game {game_id} subscriber {user_id}")
                    break
                await websocket.send_json({
                    "type": "ping",
                    "timestamp": datetime.utcnow().isoformat() + "Z"
                })
                continue

            is_ping = data == "ping"
            if not is_ping and data.startswith("{"):
                try:
                    is_ping = json.loads(data).get("type") == "ping"
                except (ValueError, AttributeError):
                    is_ping = False

            if is_ping:
                await websocket.send_json({
                    "type": "pong",
                    "timestamp": datetime.utcnow().isoformat() + "Z"
                })
                last_ping = datetime.utcnow()

    except WebSocketDisconnect:
        logger.info(f"Subscriber {user_id} left game {game_id}")
    except Exception as e:
        logger.error(f"WebSocket error for game {game_id}: {e}")
    finally:
        await websocket_manager.disconnect(websocket)
