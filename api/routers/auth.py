from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from api.deps.db import get_db
from api.crud.profile_crud import update_profile
from schemas.profile import ProfileRead, ProfileUpdate
from core.auth import get_current_user
from core.logging import logger

router = APIRouter(prefix="/auth")


@router.get("/me", response_model=ProfileRead)
async def get_current_user_info(current_user = Depends(get_current_user)):
    """Get current authenticated profile (created on first login)"""
    return current_user


@router.put("/profile", response_model=ProfileRead)
async def update_my_profile(
    profile_update: ProfileUpdate,
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update display name"""
    updated = update_profile(db, current_user.id, profile_update)
    if not updated:
        raise HTTPException(status_code=404, detail="User not found")
    logger.info(f"Profile {updated.id} updated")
    return updated


@router.post("/logout")
async def logout():
    """Logout user (client should remove token)"""
    return {"message": "Successfully logged out"}
