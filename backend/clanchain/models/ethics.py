"""
Ethics ledger entries and clan ethics rules
"""
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from clanchain.core.database import Base
from clanchain.models.mixins import SerializableMixin, new_id
from clanchain.utils.datetime_utils import utc_now


class EthicsEntryType(str, Enum):
    CONTRIBUTION = "contribution"
    VIOLATION = "violation"
    RECOGNITION = "recognition"


class EthicsEntryStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"


class EthicsRuleStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class EthicsEntry(SerializableMixin, Base):
    __tablename__ = "ethics_entries"

    id = Column(String(36), primary_key=True, default=new_id)
    clan_id = Column(String(36), ForeignKey("clans.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    member_id = Column(String(36), nullable=False, index=True)
    description = Column(Text, nullable=True)
    impact_score = Column(Integer, nullable=False, default=0)
    witness = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default=EthicsEntryStatus.PENDING.value)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)


class EthicsRule(SerializableMixin, Base):
    """Clan rule; deleted by archiving"""
    __tablename__ = "ethics_rules"

    id = Column(String(36), primary_key=True, default=new_id)
    clan_id = Column(String(36), ForeignKey("clans.id", ondelete="CASCADE"), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=True)
    status = Column(String(20), nullable=False, default=EthicsRuleStatus.ACTIVE.value, index=True)
    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)
