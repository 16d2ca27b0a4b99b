"""
Shared fixtures: in-memory SQLite, a TestClient wired to it and token helpers.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from db import Base, get_db
from main import app
from core.auth import create_access_token
from core.roles import UserRole
from api.crud.game_crud import create_game, get_game_boxes
from api.crud.profile_crud import get_or_create_profile, set_role
from schemas.game import GameCreate


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    # Застосунок і тест працюють з однією сесією
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def game(db):
    return create_game(db, GameCreate(
        home_team="Seattle Seahawks",
        home_abbreviation="SEA",
        away_team="New England Patriots",
        away_abbreviation="NE",
        espn_game_id="401671999",
    ))


@pytest.fixture
def box_ids(db, game):
    """Box ids of the game in grid order (row-major)"""
    return [box.id for box in get_game_boxes(db, game.id)]


def make_profile(db, user_id: str, full_name: str, role: UserRole = UserRole.USER):
    profile, _ = get_or_create_profile(db, user_id, f"{user_id}@example.com", full_name)
    if role != UserRole.USER:
        profile = set_role(db, user_id, role)
    return profile


def auth_headers(user_id: str, full_name: str = None, email: str = None) -> dict:
    token = create_access_token({
        "sub": user_id,
        "email": email or f"{user_id}@example.com",
        "name": full_name or user_id.title(),
    })
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice(db):
    return make_profile(db, "alice", "Alice Walker")


@pytest.fixture
def bob(db):
    return make_profile(db, "bob", "Bob Stone")


@pytest.fixture
def admin(db):
    return make_profile(db, "admin", "Pool Admin", UserRole.ADMIN)
