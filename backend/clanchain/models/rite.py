"""
Rite (ceremony) model
"""
from enum import Enum

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Text

from clanchain.core.database import Base
from clanchain.models.mixins import SerializableMixin, new_id
from clanchain.utils.datetime_utils import utc_now


class RiteType(str, Enum):
    BIRTH = "birth"
    NAMING = "naming"
    MARRIAGE = "marriage"
    BURIAL = "burial"
    INITIATION = "initiation"
    BLESSING = "blessing"


class RiteStatus(str, Enum):
    PLANNED = "planned"
    COMPLETED = "completed"


class Rite(SerializableMixin, Base):
    __tablename__ = "rites"

    id = Column(String(36), primary_key=True, default=new_id)
    clan_id = Column(String(36), ForeignKey("clans.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(20), nullable=False, index=True)
    date = Column(DateTime(timezone=True), nullable=False)
    member_id = Column(String(36), nullable=True)
    officiant = Column(String(255), nullable=True)
    participants = Column(JSON, nullable=False, default=list)
    location = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    cultural_significance = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=RiteStatus.PLANNED.value)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)

    def __repr__(self):
        return f"<Rite(id={self.id}, type={self.type}, status={self.status})>"
