"""
ESPN scoreboard adapter.

Fetches the public NFL scoreboard, picks one event and normalizes it into a
ScoreSnapshot. Anything unexpected (timeouts, HTTP errors, missing or
malformed fields) means "no score" rather than an exception, so callers can
keep serving the board.
"""
import logging
from typing import Any, List, Optional

import httpx
from sqlalchemy.orm import Session

from api.crud import game_crud
from api.crud.box_crud import get_box_at
from core.config import settings
from core.exceptions import NumbersNotAssigned
from models.game import Game, GameStatus
from schemas.score import GameState, LeadingCell, QuarterScore, ScoreResponse, ScoreSnapshot
from services.settlement import resolve_winning_cell

logger = logging.getLogger(__name__)

# Провайдер рухає статус гри тільки вперед
STATE_TRANSITIONS = {
    GameState.IN: (GameStatus.LIVE, (GameStatus.SELLING, GameStatus.NUMBERS_ASSIGNED)),
    GameState.POST: (GameStatus.FINAL, (GameStatus.SELLING, GameStatus.NUMBERS_ASSIGNED, GameStatus.LIVE)),
}


def _to_int(value: Any, default: int = 0) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValueError("Boolean is not a score")
    if isinstance(value, (int, float)):
        return int(value)
    # "14.0" -> 14
    return int(float(str(value).strip()))


def cumulative_quarter_scores(home_linescores: List[Any], away_linescores: List[Any]) -> List[QuarterScore]:
    """Prefix-sum per-period points into cumulative (home, away) scores per period"""
    quarter_scores = []
    home_total = away_total = 0
    for home_period, away_period in zip(home_linescores or [], away_linescores or []):
        home_total += _to_int(home_period.get("value") if isinstance(home_period, dict) else home_period)
        away_total += _to_int(away_period.get("value") if isinstance(away_period, dict) else away_period)
        quarter_scores.append(QuarterScore(home=home_total, away=away_total))
    return quarter_scores


def parse_scoreboard(payload: Any, espn_game_id: str) -> Optional[ScoreSnapshot]:
    """Normalize an ESPN scoreboard payload; None if the event is missing or malformed"""
    try:
        events = payload.get("events") or []
        event = next((e for e in events if str(e.get("id")) == str(espn_game_id)), None)
        if not event:
            return None

        competition = event["competitions"][0]
        status = competition.get("status") or {}
        competitors = competition.get("competitors") or []
        home = next((c for c in competitors if c.get("homeAway") == "home"), None)
        away = next((c for c in competitors if c.get("homeAway") == "away"), None)
        if not home or not away:
            return None

        situation = competition.get("situation") or {}
        home_team = home.get("team") or {}
        away_team = away.get("team") or {}
        return ScoreSnapshot(
            game_state=GameState((status.get("type") or {}).get("state")),
            period=_to_int(status.get("period")),
            display_clock=status.get("displayClock") or "",
            home_score=_to_int(home.get("score")),
            away_score=_to_int(away.get("score")),
            home_team=home_team.get("abbreviation") or "",
            away_team=away_team.get("abbreviation") or "",
            home_logo=home_team.get("logo"),
            away_logo=away_team.get("logo"),
            last_play=(situation.get("lastPlay") or {}).get("text"),
            down=situation.get("shortDownDistanceText"),
            possession=situation.get("possession"),
            quarter_scores=cumulative_quarter_scores(home.get("linescores"), away.get("linescores")),
        )
    except (AttributeError, KeyError, IndexError, TypeError, ValueError, OverflowError) as e:
        logger.warning(f"Malformed ESPN payload for event {espn_game_id}: {e}")
        return None


class EspnScoreService:
    def __init__(self, scoreboard_url: str = None, timeout: float = None, transport: httpx.AsyncBaseTransport = None):
        self.scoreboard_url = scoreboard_url or settings.espn_scoreboard_url
        self.timeout = timeout if timeout is not None else settings.espn_timeout_seconds
        self.transport = transport

    async def fetch_score(self, espn_game_id: str) -> Optional[ScoreSnapshot]:
        if not espn_game_id:
            return None
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(self.scoreboard_url)
            if response.status_code != 200:
                logger.warning(f"ESPN scoreboard returned {response.status_code}")
                return None
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"ESPN scoreboard unavailable: {e}")
            return None

        return parse_scoreboard(payload, espn_game_id)


def advance_game_status(db: Session, game: Game, snapshot: Optional[ScoreSnapshot]) -> bool:
    """Move game status forward according to the provider's game state; never backward"""
    if snapshot is None or snapshot.game_state not in STATE_TRANSITIONS:
        return False

    new_status, allowed_from = STATE_TRANSITIONS[snapshot.game_state]
    changed = game_crud.advance_status(db, game.id, new_status, allowed_from)
    if changed:
        db.refresh(game)
        logger.info(f"Game {game.id} status advanced to {new_status.value} (ESPN state {snapshot.game_state.value})")
    return changed


def leading_cell(db: Session, game: Game, snapshot: ScoreSnapshot) -> Optional[LeadingCell]:
    """Cell that would win if the current score held"""
    if not game.numbers_assigned:
        return None
    try:
        row_index, col_index = resolve_winning_cell(
            game.row_numbers, game.col_numbers, snapshot.home_score, snapshot.away_score
        )
    except NumbersNotAssigned:
        return None

    box = get_box_at(db, game.id, row_index, col_index)
    return LeadingCell(
        row_index=row_index,
        col_index=col_index,
        box_id=box.id if box else None,
        user_id=box.user_id if box else None,
        owner_name=box.owner.full_name if box and box.owner else None,
    )


async def refresh_game_score(db: Session, game: Game, service: "EspnScoreService" = None) -> ScoreResponse:
    """Fetch the score for one game, advance its status, describe the leading cell"""
    service = service or espn_service
    snapshot = await service.fetch_score(game.espn_game_id)
    if snapshot is None:
        return ScoreResponse(score=None, error="Score unavailable", game_status=game.status.value)

    advance_game_status(db, game, snapshot)
    return ScoreResponse(
        score=snapshot,
        game_status=game.status.value,
        leading_cell=leading_cell(db, game, snapshot),
    )


espn_service = EspnScoreService()
