"""
Service packages, subscriptions and payments
"""
from enum import Enum

from sqlalchemy import (JSON, Boolean, Column, DateTime, ForeignKey, Numeric,
                        String)
from sqlalchemy.orm import relationship

from clanchain.core.database import Base
from clanchain.models.mixins import SerializableMixin, new_id
from clanchain.utils.datetime_utils import utc_now


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    REFUNDED = "refunded"


class ServicePackage(SerializableMixin, Base):
    __tablename__ = "service_packages"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False, unique=True)
    price_monthly = Column(Numeric(10, 2), nullable=False, default=0)
    features = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)


class Subscription(SerializableMixin, Base):
    __tablename__ = "subscriptions"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    package_id = Column(String(36), ForeignKey("service_packages.id"), nullable=True)
    status = Column(String(20), nullable=False, default=SubscriptionStatus.ACTIVE.value, index=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    package = relationship("ServicePackage")
    payments = relationship("Payment", back_populates="subscription", cascade="all, delete-orphan",
                            passive_deletes=True)


class Payment(SerializableMixin, Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=new_id)
    subscription_id = Column(String(36), ForeignKey("subscriptions.id", ondelete="CASCADE"),
                             nullable=True, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(10), nullable=False, default="USD")
    payment_provider = Column(String(50), nullable=False, default="paystack")
    status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value, index=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)

    subscription = relationship("Subscription", back_populates="payments")
