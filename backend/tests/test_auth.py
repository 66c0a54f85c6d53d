"""
Tests for authentication routes and AuthService
"""
from datetime import timedelta

from clanchain.models.user import AppRole, AuthSession
from clanchain.services.auth_service import AuthService
from clanchain.utils.datetime_utils import utc_now


class TestAuthRoutes:
    def test_register_login_me_logout(self, client):
        response = client.post(
            "/api/auth/register",
            json={"email": "chidi@example.com", "password": "s3cret-pass", "full_name": "Chidi"},
        )
        assert response.status_code == 201
        assert response.json()["roles"] == ["user"]

        login = client.post("/api/auth/login", json={"email": "chidi@example.com", "password": "s3cret-pass"})
        assert login.status_code == 200
        token = login.json()["token"]
        headers = {"Authorization": f"Bearer {token}"}

        me = client.get("/api/auth/me", headers=headers)
        assert me.status_code == 200
        assert me.json()["email"] == "chidi@example.com"
        assert me.json()["last_sign_in_at"] is not None

        assert client.post("/api/auth/logout", headers=headers).status_code == 204
        assert client.get("/api/auth/me", headers=headers).status_code == 401

    def test_duplicate_email(self, client, user):
        response = client.post(
            "/api/auth/register", json={"email": "member@example.com", "password": "password123"}
        )
        assert response.status_code == 400
        assert "already exists" in response.json()["error"]

    def test_short_password(self, client):
        response = client.post("/api/auth/register", json={"email": "x@example.com", "password": "short"})
        assert response.status_code == 400

    def test_wrong_password(self, client, user):
        response = client.post("/api/auth/login", json={"email": "member@example.com", "password": "nope-nope"})
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid email or password"}

    def test_me_requires_token(self, client):
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}


class TestAuthService:
    def test_password_is_hashed(self, db, user):
        assert user.password_hash != "password123"
        assert AuthService(db).authenticate("member@example.com", "password123").id == user.id

    def test_expired_session_is_rejected(self, db, user):
        session = AuthSession(user_id=user.id, token="stale", expires_at=utc_now() - timedelta(minutes=1))
        db.add(session)
        db.commit()

        assert AuthService(db).validate_session("stale") is None
        assert db.query(AuthSession).filter(AuthSession.token == "stale").first() is None

    def test_grant_role_is_idempotent(self, db, user):
        service = AuthService(db)
        first = service.grant_role(user.id, AppRole.ELDER)
        second = service.grant_role(user.id, AppRole.ELDER)

        assert first.id == second.id
        assert service.get_roles(user.id) == ["elder", "user"]
        assert service.has_role(user.id, AppRole.ELDER)
        assert not service.has_role(user.id, AppRole.SUPERADMIN)
