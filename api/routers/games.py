from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List
from api.deps.db import get_db
from api.crud.game_crud import get_games, get_game_boxes
from api.crud.quarter_result_crud import get_game_results
from schemas.box import BoxRead, ClaimRequest, ClaimResponse, MyBoxesSummary, TransitionResponse
from schemas.game import GameRead, GameStats, PriceQuote
from schemas.quarter_result import QuarterResultRead
from schemas.score import ScoreResponse
from core.auth import get_current_user
from core.validators import validate_game_exists
from models.profile import Profile
from services import grid_service, notification_service
from services.espn_service import refresh_game_score

router = APIRouter(prefix="/games", tags=["Games"])


@router.get("", response_model=List[GameRead])
async def list_games(db: Session = Depends(get_db)):
    return get_games(db)


@router.get("/{game_id}", response_model=GameRead)
async def get_game_details(game_id: int, db: Session = Depends(get_db)):
    """Get game details, including assigned numbers"""
    return validate_game_exists(db, game_id)


@router.get("/{game_id}/boxes", response_model=List[BoxRead])
async def get_boxes(game_id: int, db: Session = Depends(get_db)):
    """Full 10x10 grid with owners"""
    validate_game_exists(db, game_id)
    return get_game_boxes(db, game_id)


@router.get("/{game_id}/stats", response_model=GameStats)
async def get_game_stats(game_id: int, db: Session = Depends(get_db)):
    """Box counts, pot and per-quarter payouts"""
    game = validate_game_exists(db, game_id)
    return grid_service.game_stats(db, game)


@router.get("/{game_id}/price", response_model=PriceQuote)
async def get_price_quote(
    game_id: int,
    count: int = Query(..., ge=0, le=100),
    db: Session = Depends(get_db)
):
    game = validate_game_exists(db, game_id)
    return grid_service.quote_price(game, count)


@router.post("/{game_id}/boxes/claim", response_model=ClaimResponse)
async def claim_boxes(
    game_id: int,
    claim: ClaimRequest,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Reserve available boxes for the caller (all or nothing)"""
    game = validate_game_exists(db, game_id)
    result = grid_service.claim_boxes_logic(db, game, current_user, claim.box_ids)
    await notification_service.notify_boxes_changed(game_id, result["box_ids"], db)
    return result


@router.get("/{game_id}/boxes/mine", response_model=MyBoxesSummary)
async def get_my_boxes(
    game_id: int,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Caller's boxes and what they still owe"""
    game = validate_game_exists(db, game_id)
    return grid_service.my_boxes_summary(db, game, current_user)


@router.delete("/{game_id}/boxes/mine", response_model=TransitionResponse)
async def cancel_my_reservations(
    game_id: int,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Release the caller's unpaid reservations; confirmed boxes stay"""
    game = validate_game_exists(db, game_id)
    released = grid_service.release_boxes(db, game, current_user.id)
    await notification_service.notify_boxes_changed(game_id, released, db)
    return {
        "game_id": game_id,
        "user_id": current_user.id,
        "updated": len(released),
        "message": f"Released {len(released)} boxes",
    }


@router.get("/{game_id}/results", response_model=List[QuarterResultRead])
async def get_results(game_id: int, db: Session = Depends(get_db)):
    """Recorded quarter winners"""
    validate_game_exists(db, game_id)
    return get_game_results(db, game_id)


@router.get("/{game_id}/score", response_model=ScoreResponse)
async def get_score(game_id: int, db: Session = Depends(get_db)):
    """Live score from ESPN; advances game status as the game progresses"""
    game = validate_game_exists(db, game_id)
    previous_status = game.status
    score = await refresh_game_score(db, game)
    if game.status != previous_status:
        await notification_service.notify_game_updated(game)
    return score
