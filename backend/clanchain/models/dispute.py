"""
Dispute and testimony models
"""
from enum import Enum

from sqlalchemy import (JSON, Boolean, Column, DateTime, ForeignKey, Integer,
                        String, Text)
from sqlalchemy.orm import relationship

from clanchain.core.database import Base
from clanchain.models.mixins import SerializableMixin, new_id
from clanchain.utils.datetime_utils import utc_now


class DisputeType(str, Enum):
    INHERITANCE = "inheritance"
    MARRIAGE = "marriage"
    DEBT = "debt"
    LAND = "land"
    OTHER = "other"


class DisputeStatus(str, Enum):
    OPEN = "open"
    UNDER_REVIEW = "under_review"
    ESCALATED = "escalated"
    RESOLVED = "resolved"
    REJECTED = "rejected"


TERMINAL_STATUSES = frozenset({DisputeStatus.RESOLVED.value, DisputeStatus.REJECTED.value})

# Normal workflow; escalated -> under_review is reserved for elder override
ALLOWED_TRANSITIONS = {
    DisputeStatus.OPEN.value: frozenset({DisputeStatus.UNDER_REVIEW.value}),
    DisputeStatus.UNDER_REVIEW.value: frozenset({
        DisputeStatus.ESCALATED.value,
        DisputeStatus.RESOLVED.value,
        DisputeStatus.REJECTED.value,
    }),
    DisputeStatus.ESCALATED.value: frozenset(),
    DisputeStatus.RESOLVED.value: frozenset(),
    DisputeStatus.REJECTED.value: frozenset(),
}


class Dispute(SerializableMixin, Base):
    """Grievance record with accumulating testimonies"""
    __tablename__ = "disputes"

    id = Column(String(36), primary_key=True, default=new_id)
    clan_id = Column(String(36), ForeignKey("clans.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(20), nullable=False, default=DisputeType.OTHER.value)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=DisputeStatus.OPEN.value, index=True)
    submitted_by = Column(String(36), nullable=True)
    involved_parties = Column(JSON, nullable=False, default=list)

    # Advisor recommendation, stored as returned
    verdict = Column(JSON, nullable=True)

    # Elder override outcome
    final_decision = Column(Text, nullable=True)
    resolution_reasoning = Column(Text, nullable=True)
    resolved_by = Column(String(36), nullable=True)
    elder_override = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    testimonies = relationship(
        "Testimony",
        back_populates="dispute",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=lambda: [Testimony.timestamp, Testimony.id],
    )

    def to_dict(self):
        data = super().to_dict()
        data["testimonies"] = [t.to_dict() for t in self.testimonies]
        return data

    def __repr__(self):
        return f"<Dispute(id={self.id}, clan_id={self.clan_id}, status={self.status})>"


class Testimony(SerializableMixin, Base):
    """One appended statement; rows are never updated except for verification"""
    __tablename__ = "dispute_testimonies"
    __private_fields__ = frozenset({"id", "dispute_id"})

    id = Column(Integer, primary_key=True, autoincrement=True)
    dispute_id = Column(String(36), ForeignKey("disputes.id", ondelete="CASCADE"), nullable=False, index=True)
    by = Column("given_by", String(36), nullable=False)
    text = Column(Text, nullable=False)
    timestamp = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    verified = Column(Boolean, nullable=False, default=False)
    verified_by = Column(String(36), nullable=True)

    dispute = relationship("Dispute", back_populates="testimonies")

    def __repr__(self):
        return f"<Testimony(id={self.id}, dispute_id={self.dispute_id}, by={self.by})>"
