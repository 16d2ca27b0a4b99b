"""
Роутер для адміністративних функцій
"""
from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.orm import Session
from typing import List

from core.auth import get_admin
from core.roles import UserRole
from core.validators import validate_game_exists, validate_profile_exists
from api.deps.db import get_db
from api.crud.game_crud import create_game
from api.crud.box_crud import detach_user
from api.crud.profile_crud import list_profiles, set_role
from models.profile import Profile
from schemas.box import GiveawayRequest, GiveawayResponse, TransitionResponse
from schemas.game import GameCreate, GameRead, NumbersResponse
from schemas.profile import ProfileRead, ProfileWithBoxes
from schemas.quarter_result import QuarterResultRead, QuarterScoreInput
from services import grid_service, notification_service
from services.settlement import record_quarter
from core.logging import logger

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/games", response_model=GameRead, status_code=status.HTTP_201_CREATED)
async def create_new_game(
    game_data: GameCreate,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_admin)
):
    """Створити гру разом із сіткою 10x10"""
    game = create_game(db, game_data)
    logger.info(f"Admin {current_user.id} created game {game.id} ({game.away_abbreviation} @ {game.home_abbreviation})")
    return game


@router.get("/games/{game_id}/users", response_model=List[ProfileWithBoxes])
async def get_users_with_boxes(
    game_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_admin)
):
    """Всі профілі з кількістю клітинок та сумою до оплати"""
    game = validate_game_exists(db, game_id)
    return grid_service.profiles_with_boxes(db, game, list_profiles(db))


@router.post("/games/{game_id}/users/{user_id}/confirm", response_model=TransitionResponse)
async def confirm_payment(
    game_id: int,
    user_id: str,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_admin)
):
    """Підтвердити оплату: reserved -> confirmed для всіх клітинок користувача"""
    game = validate_game_exists(db, game_id)
    confirmed = grid_service.confirm_payment(db, game, user_id)
    await notification_service.notify_boxes_changed(game_id, confirmed, db)
    return {
        "game_id": game_id,
        "user_id": user_id,
        "updated": len(confirmed),
        "message": "Payment confirmed!" if confirmed else "No reserved boxes to confirm",
    }


@router.post("/games/{game_id}/users/{user_id}/release", response_model=TransitionResponse)
async def release_boxes(
    game_id: int,
    user_id: str,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_admin)
):
    """Звільнити неоплачені клітинки користувача"""
    game = validate_game_exists(db, game_id)
    released = grid_service.release_boxes(db, game, user_id)
    await notification_service.notify_boxes_changed(game_id, released, db)
    return {
        "game_id": game_id,
        "user_id": user_id,
        "updated": len(released),
        "message": "Boxes released!" if released else "No reserved boxes to release",
    }


@router.post("/games/{game_id}/giveaway", response_model=GiveawayResponse)
async def distribute_giveaway(
    game_id: int,
    giveaway: GiveawayRequest,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_admin)
):
    """Роздати вільні клітинки безкоштовно (одразу confirmed)"""
    game = validate_game_exists(db, game_id)
    given = grid_service.distribute_giveaway(db, game, giveaway.allocations)
    all_ids = [box_id for ids in given.values() for box_id in ids]
    await notification_service.notify_boxes_changed(game_id, all_ids, db)
    return {
        "game_id": game_id,
        "total": len(all_ids),
        "allocations": {user_id: len(ids) for user_id, ids in given.items()},
        "message": f"Gave away {len(all_ids)} boxes!",
    }


@router.post("/games/{game_id}/assign-numbers", response_model=NumbersResponse)
async def assign_numbers(
    game_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_admin)
):
    """Випадкові цифри 0-9 для рядків і стовпців (тільки один раз)"""
    game = validate_game_exists(db, game_id)
    game = grid_service.assign_numbers(db, game)
    await notification_service.notify_game_updated(game)
    return {
        "game_id": game.id,
        "row_numbers": game.row_numbers,
        "col_numbers": game.col_numbers,
        "status": game.status,
        "message": f"Numbers assigned! Rows: {game.row_numbers} Cols: {game.col_numbers}",
    }


@router.post("/games/{game_id}/reset-numbers", response_model=NumbersResponse)
async def reset_numbers(
    game_id: int,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_admin)
):
    """Скинути цифри; статус повертається в selling"""
    game = validate_game_exists(db, game_id)
    game = grid_service.reset_numbers(db, game)
    await notification_service.notify_game_updated(game)
    return {
        "game_id": game.id,
        "row_numbers": None,
        "col_numbers": None,
        "status": game.status,
        "message": "Numbers reset. Status back to selling.",
    }


@router.post("/games/{game_id}/quarters/{quarter}", response_model=QuarterResultRead)
async def record_quarter_result(
    game_id: int,
    scores: QuarterScoreInput,
    quarter: int = Path(..., ge=1, le=4),
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_admin)
):
    """Записати рахунок чверті; повторний запис перезаписує результат"""
    game = validate_game_exists(db, game_id)
    result = record_quarter(db, game, quarter, scores.home_score, scores.away_score)
    await notification_service.notify_quarter_recorded(result)
    return result


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_admin)
):
    """Видалити користувача: резерви звільняються, оплачені клітинки лишаються confirmed"""
    if user_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete yourself"
        )

    profile = validate_profile_exists(db, user_id)
    touched = detach_user(db, user_id)
    db.delete(profile)
    db.commit()
    logger.info(f"Admin {current_user.id} deleted user {user_id}")

    for game_id, box_ids in touched.items():
        await notification_service.notify_boxes_changed(game_id, box_ids, db)
    return {"success": True, "message": f"User {user_id} deleted"}


@router.patch("/users/{user_id}/role", response_model=ProfileRead)
async def update_user_role(
    user_id: str,
    role: UserRole,
    db: Session = Depends(get_db),
    current_user: Profile = Depends(get_admin)
):
    """Змінити роль користувача (не можна змінити свою)"""
    if user_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot change your own role"
        )
    validate_profile_exists(db, user_id)
    return set_role(db, user_id, role)
