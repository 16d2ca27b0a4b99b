from typing import Optional, Tuple
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from models.profile import Profile
from core.roles import UserRole
from schemas.profile import ProfileUpdate


def get_profile(db: Session, user_id: str) -> Optional[Profile]:
    return db.query(Profile).filter(Profile.id == user_id).first()


def default_full_name(email: Optional[str], name: Optional[str]) -> str:
    if name:
        return name
    if email:
        return email.split("@")[0]
    return "Anonymous"


def get_or_create_profile(
    db: Session,
    user_id: str,
    email: Optional[str] = None,
    name: Optional[str] = None,
) -> Tuple[Profile, bool]:
    profile = get_profile(db, user_id)
    if profile:
        return profile, False

    profile = Profile(
        id=user_id,
        full_name=default_full_name(email, name),
        email=email or "",
        role=UserRole.USER,
    )
    db.add(profile)
    try:
        db.commit()
    except IntegrityError:
        # Паралельний перший вхід того ж користувача вже створив профіль
        db.rollback()
        return get_profile(db, user_id), False
    db.refresh(profile)
    return profile, True


def update_profile(db: Session, user_id: str, profile_update: ProfileUpdate) -> Optional[Profile]:
    db_profile = get_profile(db, user_id)
    if not db_profile:
        return None

    update_data = profile_update.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(db_profile, field, value)

    db.commit()
    db.refresh(db_profile)
    return db_profile


def set_role(db: Session, user_id: str, role: UserRole) -> Optional[Profile]:
    db_profile = get_profile(db, user_id)
    if not db_profile:
        return None
    db_profile.role = role
    db.commit()
    db.refresh(db_profile)
    return db_profile


def list_profiles(db: Session):
    return db.query(Profile).order_by(Profile.full_name.asc()).all()
