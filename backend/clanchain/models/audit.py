"""
Audit log and platform configuration models
"""
from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Text

from clanchain.core.database import Base
from clanchain.models.mixins import SerializableMixin, new_id
from clanchain.utils.datetime_utils import utc_now


class AuditLog(SerializableMixin, Base):
    """One row per privileged mutation"""
    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True)
    action = Column(String(100), nullable=False, index=True)
    details = Column(JSON, nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action={self.action})>"


class SystemConfig(SerializableMixin, Base):
    """Key/value platform setting editable from the superadmin surface"""
    __tablename__ = "system_config"

    id = Column(String(36), primary_key=True, default=new_id)
    key = Column(String(100), unique=True, nullable=False, index=True)
    value = Column(JSON, nullable=False)
    description = Column(Text, nullable=True)
    updated_by = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    def __repr__(self):
        return f"<SystemConfig(key={self.key})>"
