from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from core.config import settings
from core.exceptions import RoleRequired
from core.roles import UserRole
from core.logging import logger
from api.deps.db import get_db
from api.crud.profile_crud import get_or_create_profile
from models.profile import Profile
from schemas.profile import TokenData

security = HTTPBearer()


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.jwt_expire_minutes)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return encoded_jwt


def verify_token(token: str, credentials_exception):
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"verify_aud": False},
        )
        user_id: str = payload.get("sub")
        if user_id is None:
            raise credentials_exception
        token_data = TokenData(
            user_id=str(user_id),
            email=payload.get("email"),
            name=payload.get("name") or (payload.get("user_metadata") or {}).get("full_name"),
        )
    except JWTError:
        raise credentials_exception
    return token_data


def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security), db: Session = Depends(get_db)):
    """
    Повертає профіль власника токена.
    Перший успішний вхід створює профіль з claims токена (email, name).
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token_data = verify_token(credentials.credentials, credentials_exception)
    profile, created = get_or_create_profile(db, token_data.user_id, token_data.email, token_data.name)
    if created:
        logger.info(f"Created profile {profile.id} on first login")
    return profile


def require_role(required_role: UserRole):
    """
    Декоратор для перевірки ролі користувача.
    Використовує ієрархію ролей - вищі ролі мають доступ до функцій нижчих.

    Приклад використання:
    @router.post("/admin-only")
    async def admin_endpoint(user: Profile = Depends(require_role(UserRole.ADMIN))):
        return {"message": "Admin access granted"}
    """
    def role_checker(current_user: Profile = Depends(get_current_user)):
        if not UserRole.has_permission(current_user.role, required_role):
            raise RoleRequired(required_role.value)
        return current_user
    return role_checker


def get_admin(current_user: Profile = Depends(require_role(UserRole.ADMIN))):
    """Dependency для ендпоінтів, доступних тільки адмінам"""
    return current_user
