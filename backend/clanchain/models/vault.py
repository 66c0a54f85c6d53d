"""
Clan vault (pooled funds ledger) and its transaction log
"""
from enum import Enum

from sqlalchemy import (JSON, CheckConstraint, Column, DateTime, ForeignKey,
                        Numeric, String, Text)
from sqlalchemy.orm import relationship

from clanchain.core.database import Base
from clanchain.models.mixins import SerializableMixin, new_id
from clanchain.utils.datetime_utils import utc_now


class VaultType(str, Enum):
    EDUCATION = "education"
    HEALTH = "health"
    FUNERAL = "funeral"
    LEGAL = "legal"
    EMERGENCY = "emergency"


class VaultTransactionType(str, Enum):
    CONTRIBUTION = "contribution"
    WITHDRAWAL = "withdrawal"


class Vault(SerializableMixin, Base):
    __tablename__ = "vaults"
    __table_args__ = (CheckConstraint("balance >= 0", name="vaults_balance_non_negative"),)

    id = Column(String(36), primary_key=True, default=new_id)
    clan_id = Column(String(36), ForeignKey("clans.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=True)
    balance = Column(Numeric(14, 2), nullable=False, default=0)
    currency = Column(String(10), nullable=False, default="USD")
    vault_type = Column(String(20), nullable=False, default=VaultType.EMERGENCY.value)
    rules = Column(JSON, nullable=False, default=dict)
    contributors = Column(JSON, nullable=False, default=list)
    target_amount = Column(Numeric(14, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)

    transactions = relationship("VaultTransaction", back_populates="vault", cascade="all, delete-orphan",
                                passive_deletes=True, order_by="VaultTransaction.created_at")

    def __repr__(self):
        return f"<Vault(id={self.id}, clan_id={self.clan_id}, balance={self.balance})>"


class VaultTransaction(SerializableMixin, Base):
    """Contribution or withdrawal event; the only way a balance changes"""
    __tablename__ = "vault_transactions"

    id = Column(String(36), primary_key=True, default=new_id)
    vault_id = Column(String(36), ForeignKey("vaults.id", ondelete="CASCADE"), nullable=False, index=True)
    kind = Column(String(20), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    member_id = Column(String(36), nullable=False)
    reason = Column(Text, nullable=True)
    balance_after = Column(Numeric(14, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    vault = relationship("Vault", back_populates="transactions")
