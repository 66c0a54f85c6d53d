"""
Authentication service: profiles, bearer sessions and role lookups
"""
import secrets
from datetime import timedelta
from typing import List, Optional

import bcrypt
from sqlalchemy.orm import Session

from clanchain.core.config import get_settings
from clanchain.core.exceptions import ValidationError
from clanchain.core.logging_config import LoggingConfig
from clanchain.models.user import (AppRole, AuthSession, Profile,
                                   ProfileStatus, UserRole)
from clanchain.utils.datetime_utils import utc_now

logger = LoggingConfig.get_logger(__name__)


class AuthService:
    """Service for user authentication and session management"""

    def __init__(self, db: Session):
        self.db = db
        self.session_duration_hours = get_settings().session_duration_hours

    def register_user(
        self,
        email: str,
        password: str,
        full_name: Optional[str] = None,
    ) -> Profile:
        """
        Register a new profile

        Raises:
            ValidationError: If the email is already registered
        """
        if self.db.query(Profile).filter(Profile.email == email).first():
            raise ValidationError(f"Email '{email}' already exists")

        user = Profile(
            email=email,
            full_name=full_name,
            password_hash=self._hash_password(password),
            status=ProfileStatus.ACTIVE.value,
        )
        user.roles.append(UserRole(role=AppRole.USER.value))

        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"Registered new user: {user.id}")
        return user

    def authenticate(self, email: str, password: str) -> Optional[Profile]:
        """
        Authenticate a profile by email and password

        Returns:
            Profile if authentication succeeded, None otherwise
        """
        user = self.db.query(Profile).filter(Profile.email == email).first()

        if not user:
            logger.warning("Authentication failed: unknown email")
            return None

        if user.status != ProfileStatus.ACTIVE.value:
            logger.warning(f"Authentication failed: user {user.id} is {user.status}")
            return None

        if not user.password_hash or not self._verify_password(password, user.password_hash):
            logger.warning(f"Authentication failed: invalid password for user {user.id}")
            return None

        user.last_sign_in_at = utc_now()
        self.db.commit()

        logger.info(f"User {user.id} authenticated successfully")
        return user

    def create_session(self, user_id: str, duration_hours: Optional[int] = None) -> AuthSession:
        """Issue a new bearer token for a profile"""
        duration = duration_hours or self.session_duration_hours
        session = AuthSession(
            user_id=user_id,
            token=secrets.token_urlsafe(32),
            expires_at=utc_now() + timedelta(hours=duration),
        )

        self.db.add(session)
        self.db.commit()
        self.db.refresh(session)

        logger.info(f"Created session for user {user_id}")
        return session

    def validate_session(self, token: str) -> Optional[Profile]:
        """
        Resolve a bearer token to an active profile

        Returns:
            Profile if the token is known, unexpired and the profile is active
        """
        session = self.db.query(AuthSession).filter(AuthSession.token == token).first()
        if not session:
            return None

        expires_at = session.expires_at
        now = utc_now()
        if expires_at.tzinfo is None:
            # SQLite drops tzinfo; stored values are UTC
            now = now.replace(tzinfo=None)
        if expires_at <= now:
            logger.info(f"Session for user {session.user_id} expired")
            self.db.delete(session)
            self.db.commit()
            return None

        user = session.user
        if user is None or user.status != ProfileStatus.ACTIVE.value:
            return None
        return user

    def revoke_session(self, token: str) -> bool:
        """Delete a session; returns False when the token was unknown"""
        deleted = self.db.query(AuthSession).filter(AuthSession.token == token).delete()
        self.db.commit()
        return bool(deleted)

    def get_roles(self, user_id: str) -> List[str]:
        rows = self.db.query(UserRole.role).filter(UserRole.user_id == user_id).all()
        return sorted(role for (role,) in rows)

    def has_role(self, user_id: str, role: AppRole) -> bool:
        """True when a user_roles row exists for (user_id, role)"""
        return self.db.query(UserRole.id).filter(
            UserRole.user_id == user_id,
            UserRole.role == role.value,
        ).first() is not None

    def grant_role(self, user_id: str, role: AppRole, assigned_by: Optional[str] = None) -> UserRole:
        """Idempotently add a role row"""
        existing = self.db.query(UserRole).filter(
            UserRole.user_id == user_id,
            UserRole.role == role.value,
        ).first()
        if existing:
            return existing

        row = UserRole(user_id=user_id, role=role.value, assigned_by=assigned_by)
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        logger.info(f"Granted role {role.value} to user {user_id}")
        return row

    @staticmethod
    def _hash_password(password: str) -> str:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

    @staticmethod
    def _verify_password(password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            return False
