"""
Скрипт для призначення адміна пулу
"""
import sys

from db import SessionLocal
from api.crud.profile_crud import get_or_create_profile, list_profiles, set_role
from core.roles import UserRole


def grant_admin(user_id: str, email: str = None):
    """Призначити роль admin профілю (створює профіль, якщо його ще немає)"""
    db = SessionLocal()
    try:
        profile, created = get_or_create_profile(db, user_id, email)
        set_role(db, profile.id, UserRole.ADMIN)
        print("✅ Адміна призначено!" + (" (профіль створено)" if created else ""))
        print(f"   ID: {profile.id}")
        print(f"   Name: {profile.full_name}")
    finally:
        db.close()


def show_profiles():
    """Показати список всіх профілів"""
    db = SessionLocal()
    try:
        profiles = list_profiles(db)
        if not profiles:
            print("❌ Профілів не знайдено")
            return
        print("\n📋 Список профілів:")
        print("-" * 80)
        for profile in profiles:
            role_emoji = "🛡️" if profile.role == UserRole.ADMIN else "👤"
            print(f"{role_emoji} {profile.full_name:25} | {profile.email or '':30} | ID: {profile.id}")
        print("-" * 80)
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        show_profiles()
        print("\nВикористання: python -m scripts.create_admin <user_id> [email]")
    else:
        grant_admin(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else None)
