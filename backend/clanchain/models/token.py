"""
ClanToken ledger model
"""
from enum import Enum

from sqlalchemy import (Boolean, Column, DateTime, ForeignKey, Integer,
                        String, Text)

from clanchain.core.database import Base
from clanchain.models.mixins import SerializableMixin, new_id
from clanchain.utils.datetime_utils import utc_now


class TokenCategory(str, Enum):
    COMMUNITY_SERVICE = "community_service"
    CULTURAL_PRESERVATION = "cultural_preservation"
    EDUCATION = "education"
    ELDER_CARE = "elder_care"


class ClanToken(SerializableMixin, Base):
    """Tokens earned (or spent) by a member for a recorded action"""
    __tablename__ = "clan_tokens"

    id = Column(String(36), primary_key=True, default=new_id)
    clan_id = Column(String(36), ForeignKey("clans.id", ondelete="CASCADE"), nullable=False, index=True)
    member_id = Column(String(36), nullable=False, index=True)
    action = Column(Text, nullable=False)
    tokens_earned = Column(Integer, nullable=False, default=0)
    tokens_spent = Column(Integer, nullable=False, default=0)
    category = Column(String(40), nullable=False)
    verified = Column(Boolean, nullable=False, default=False)
    verified_by = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)

    def __repr__(self):
        return f"<ClanToken(id={self.id}, member_id={self.member_id}, earned={self.tokens_earned})>"
