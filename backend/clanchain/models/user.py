"""
Platform user (profile), bearer session and role assignment models
"""
from enum import Enum

from sqlalchemy import (Column, DateTime, ForeignKey, String,
                        UniqueConstraint)
from sqlalchemy.orm import relationship

from clanchain.core.database import Base
from clanchain.models.mixins import SerializableMixin, new_id
from clanchain.utils.datetime_utils import utc_now


class AppRole(str, Enum):
    """Roles stored in user_roles"""
    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    ELDER = "elder"
    YOUTH = "youth"
    WOMEN = "women"
    CIVIC_PARTNER = "civic_partner"
    DIASPORA = "diaspora"
    TECH_STEWARD = "tech_steward"
    USER = "user"


class ProfileStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"


class Profile(SerializableMixin, Base):
    """Platform user account"""
    __tablename__ = "profiles"
    __private_fields__ = frozenset({"password_hash"})

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=True)
    password_hash = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default=ProfileStatus.ACTIVE.value)
    focus_areas = Column(String(255), nullable=True)  # comma-separated family-tree tags
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)
    last_sign_in_at = Column(DateTime(timezone=True), nullable=True)

    sessions = relationship("AuthSession", back_populates="user", cascade="all, delete-orphan",
                            passive_deletes=True)
    roles = relationship("UserRole", back_populates="user", cascade="all, delete-orphan",
                         passive_deletes=True)

    @property
    def role_names(self):
        return sorted(r.role for r in self.roles)

    def __repr__(self):
        return f"<Profile(id={self.id}, email={self.email}, status={self.status})>"


class AuthSession(Base):
    """Bearer token issued to a profile"""
    __tablename__ = "sessions"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String(255), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    user = relationship("Profile", back_populates="sessions")

    def __repr__(self):
        return f"<AuthSession(id={self.id}, user_id={self.user_id}, expires_at={self.expires_at})>"


class UserRole(SerializableMixin, Base):
    """Role row; a user may hold several roles but each at most once"""
    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),)

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(50), nullable=False, index=True)
    assigned_by = Column(String(36), nullable=True)
    assigned_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    user = relationship("Profile", back_populates="roles")

    def __repr__(self):
        return f"<UserRole(user_id={self.user_id}, role={self.role})>"
