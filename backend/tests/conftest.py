"""
Pytest configuration and fixtures
"""
import os

# Settings are cached on first use, so the test database must be chosen before any import
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_FILE_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "text"
os.environ.pop("VERDICT_ADVISOR_URL", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import clanchain.models  # noqa: F401
from clanchain.core.database import Base, get_db, get_engine, get_session_local
from clanchain.main import app
from clanchain.models.clan import Clan, Member
from clanchain.models.user import AppRole, Profile
from clanchain.services.auth_service import AuthService


@pytest.fixture(scope="function")
def db() -> Session:
    """Fresh schema and session for every test"""
    engine = get_engine()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    session = get_session_local()()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db: Session):
    """Create test client with database dependency override"""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def user(db: Session) -> Profile:
    return AuthService(db).register_user("member@example.com", "password123", full_name="Ada Obi")


@pytest.fixture
def auth_headers(db: Session, user: Profile):
    """Bearer headers for an ordinary user"""
    session = AuthService(db).create_session(user.id)
    return {"Authorization": f"Bearer {session.token}"}


@pytest.fixture
def superadmin(db: Session) -> Profile:
    auth_service = AuthService(db)
    admin = auth_service.register_user("admin@example.com", "password123", full_name="Platform Admin")
    auth_service.grant_role(admin.id, AppRole.SUPERADMIN)
    return admin


@pytest.fixture
def superadmin_headers(db: Session, superadmin: Profile):
    """Bearer headers for a user holding the superadmin role"""
    session = AuthService(db).create_session(superadmin.id)
    return {"Authorization": f"Bearer {session.token}"}


@pytest.fixture
def clan(db: Session) -> Clan:
    """Clan "c1" used by most workflow tests"""
    clan = Clan(id="c1", name="Umuada Council", region="Anambra", elders=[])
    db.add(clan)
    db.commit()
    db.refresh(clan)
    return clan


@pytest.fixture
def elder(db: Session, clan: Clan, user: Profile) -> Member:
    """Elder "e1" of clan c1, acting through the ordinary user's account"""
    elder = Member(id="e1", clan_id=clan.id, user_id=user.id, name="Elder Okeke", role="elder")
    db.add(elder)
    clan.elders = [elder.id]
    db.commit()
    return elder
