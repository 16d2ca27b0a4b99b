import asyncio
import logging
from typing import Optional

from api.crud.game_crud import get_games_with_espn_id
from core.config import settings
from db import SessionLocal
from services import grid_service, notification_service
from services.espn_service import EspnScoreService, espn_service, refresh_game_score

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Нескінченний цикл з інтервалом; помилка одного тіку не зупиняє цикл"""

    name = "periodic-task"

    def __init__(self, interval_seconds: float):
        self.interval_seconds = interval_seconds
        self.running = False
        self._task: Optional[asyncio.Task] = None

    async def tick(self):
        raise NotImplementedError

    async def _run(self):
        logger.info(f"{self.name} started (every {self.interval_seconds}s)")
        while self.running:
            try:
                await self.tick()
            except Exception as e:
                logger.error(f"{self.name} tick failed: {e}", exc_info=True)
            await asyncio.sleep(self.interval_seconds)

    def start(self):
        if self._task is not None and not self._task.done():
            return
        self.running = True
        self._task = asyncio.create_task(self._run())

    async def stop(self):
        """Зупиняє цикл"""
        self.running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info(f"{self.name} stopped")


class ReservationSweeper(PeriodicTask):
    name = "reservation-sweeper"

    def __init__(self, interval_seconds: float = None, ttl_minutes: int = None):
        super().__init__(interval_seconds or settings.expiry_sweep_interval_seconds)
        self.ttl_minutes = ttl_minutes or settings.reservation_ttl_minutes

    async def tick(self) -> int:
        db = SessionLocal()
        try:
            expired = grid_service.expire_stale_reservations(db, self.ttl_minutes)
            for game_id, box_ids in expired.items():
                await notification_service.notify_boxes_changed(game_id, box_ids, db)
            return sum(len(ids) for ids in expired.values())
        finally:
            db.close()


class ScorePoller(PeriodicTask):
    name = "score-poller"

    def __init__(self, interval_seconds: float = None, service: EspnScoreService = None):
        super().__init__(interval_seconds or settings.score_poll_interval_seconds)
        self.service = service or espn_service

    async def tick(self):
        db = SessionLocal()
        try:
            for game in get_games_with_espn_id(db):
                previous_status = game.status
                score = await refresh_game_score(db, game, self.service)
                if score.score is None:
                    continue
                await notification_service.notify_score_updated(game.id, score)
                if game.status != previous_status:
                    await notification_service.notify_game_updated(game)
        finally:
            db.close()


reservation_sweeper = ReservationSweeper()
score_poller = ScorePoller()


def start_background_tasks():
    reservation_sweeper.start()
    score_poller.start()


async def stop_background_tasks():
    await reservation_sweeper.stop()
    await score_poller.stop()
