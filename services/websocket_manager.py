from typing import Dict, List, Optional
from fastapi import WebSocket
from collections import defaultdict
import logging

logger = logging.getLogger(__name__)


class GameWebSocketManager:
    """
    Менеджер WebSocket підключень для гри.
    Кожен клієнт підписується на одну гру і отримує всі зміни сітки, статусу і рахунку.
    Повідомлення містять повні рядки, тому клієнт може застосовувати їх повторно (merge по id).
    """

    def __init__(self):
        # Структура: {game_id: [websocket1, websocket2, ...]}
        self.game_connections: Dict[int, List[WebSocket]] = defaultdict(list)
        # Зберігаємо game_id та user_id для кожного websocket
        self.websocket_to_game: Dict[WebSocket, int] = {}
        self.websocket_to_user: Dict[WebSocket, Optional[str]] = {}

    async def connect(self, websocket: WebSocket, game_id: int, user_id: Optional[str] = None):
        """Підписати клієнта на гру"""
        await websocket.accept()
        self.game_connections[game_id].append(websocket)
        self.websocket_to_game[websocket] = game_id
        self.websocket_to_user[websocket] = user_id
        logger.info(f"Client {user_id or 'anonymous'} subscribed to game {game_id}")

    async def disconnect(self, websocket: WebSocket):
        """Відписати клієнта"""
        if websocket not in self.websocket_to_game:
            return

        game_id = self.websocket_to_game.pop(websocket)
        user_id = self.websocket_to_user.pop(websocket, None)

        if game_id in self.game_connections:
            if websocket in self.game_connections[game_id]:
                self.game_connections[game_id].remove(websocket)
            if not self.game_connections[game_id]:
                del self.game_connections[game_id]

        logger.info(f"Client {user_id or 'anonymous'} unsubscribed from game {game_id}")

    async def broadcast_to_game(self, game_id: int, message: dict):
        """Відправити повідомлення всім підписникам гри"""
        if game_id not in self.game_connections:
            return

        disconnected = []
        for ws in list(self.game_connections[game_id]):
            try:
                await ws.send_json(message)
            except Exception as e:
                logger.warning(f"Failed to send message to game {game_id} subscriber: {e}")
                disconnected.append(ws)

        # Очищаємо мертві підключення
        for ws in disconnected:
            await self.disconnect(ws)

    def get_connection_count(self, game_id: int = None) -> int:
        """Кількість підключень (всього або для конкретної гри)"""
        if game_id is not None:
            return len(self.game_connections.get(game_id, []))
        return sum(len(websockets) for websockets in self.game_connections.values())


# Глобальний інстанс менеджера
websocket_manager = GameWebSocketManager()
