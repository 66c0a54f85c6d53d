"""
Clan (tenant) and Member models
"""
from enum import Enum

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from clanchain.core.database import Base
from clanchain.models.mixins import SerializableMixin, new_id
from clanchain.utils.datetime_utils import utc_now


class CovenantStatus(str, Enum):
    ACTIVE = "active"
    DORMANT = "dormant"
    SUSPENDED = "suspended"


class MemberRole(str, Enum):
    ELDER = "elder"
    YOUTH = "youth"
    WOMEN = "women"
    DIASPORA = "diaspora"
    TECH_STEWARD = "tech_steward"


class MemberStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Clan(SerializableMixin, Base):
    """Top-level tenant"""
    __tablename__ = "clans"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False, index=True)
    region = Column(String(255), nullable=True, index=True)
    elders = Column(JSON, nullable=False, default=list)  # member ids
    covenant_status = Column(String(20), nullable=False, default=CovenantStatus.ACTIVE.value)
    verified = Column(Boolean, nullable=False, default=False)
    founder_id = Column(String(36), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    members = relationship("Member", back_populates="clan", cascade="all, delete-orphan",
                           passive_deletes=True, order_by="Member.join_date")

    def to_dict(self):
        data = super().to_dict()
        data["members"] = [m.id for m in self.members]
        return data

    def __repr__(self):
        return f"<Clan(id={self.id}, name={self.name}, status={self.covenant_status})>"


class Member(SerializableMixin, Base):
    """Clan member; owned by exactly one clan"""
    __tablename__ = "members"

    id = Column(String(36), primary_key=True, default=new_id)
    clan_id = Column(String(36), ForeignKey("clans.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=MemberRole.YOUTH.value, index=True)
    lineage = Column(JSON, nullable=False, default=list)
    rites_completed = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default=MemberStatus.ACTIVE.value)
    join_date = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    clan = relationship("Clan", back_populates="members")

    def __repr__(self):
        return f"<Member(id={self.id}, clan_id={self.clan_id}, role={self.role})>"
