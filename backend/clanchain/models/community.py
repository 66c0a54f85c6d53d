"""
Youth tasks, community insights, cultural memory records and notifications
"""
from enum import Enum

from sqlalchemy import (JSON, Boolean, Column, DateTime, Float, ForeignKey,
                        String, Text)

from clanchain.core.database import Base
from clanchain.models.mixins import SerializableMixin, new_id
from clanchain.utils.datetime_utils import utc_now


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class Task(SerializableMixin, Base):
    """Youth growth task"""
    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=new_id)
    clan_id = Column(String(36), ForeignKey("clans.id", ondelete="CASCADE"), nullable=True, index=True)
    user_id = Column(String(36), nullable=True, index=True)  # assignee
    created_by = Column(String(36), nullable=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=TaskStatus.PENDING.value)
    priority = Column(String(20), nullable=False, default=TaskPriority.MEDIUM.value)
    due_date = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)


class CommunityInsight(SerializableMixin, Base):
    __tablename__ = "community_insights"

    id = Column(String(36), primary_key=True, default=new_id)
    clan_id = Column(String(36), ForeignKey("clans.id", ondelete="CASCADE"), nullable=True, index=True)
    topic = Column(String(100), nullable=True, index=True)
    content = Column(Text, nullable=False)
    sentiment_score = Column(Float, nullable=True)
    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)


class CulturalMemory(SerializableMixin, Base):
    """Story, proverb or recording kept on the cultural memory wall"""
    __tablename__ = "cultural_memories"

    id = Column(String(36), primary_key=True, default=new_id)
    clan_id = Column(String(36), ForeignKey("clans.id", ondelete="CASCADE"), nullable=True, index=True)
    memory_type = Column(String(50), nullable=False, default="story", index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=True)
    media_url = Column(String(500), nullable=True)
    contributed_by = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)


class NotificationType(str, Enum):
    ELDER_ALERT = "elder_alert"
    YOUTH_TASK = "youth_task"
    VAULT_UPDATE = "vault_update"
    ETHICS_UPDATE = "ethics_update"
    DIASPORA_UPDATE = "diaspora_update"
    GENERAL = "general"


class Notification(SerializableMixin, Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=new_id)
    clan_id = Column(String(36), ForeignKey("clans.id", ondelete="CASCADE"), nullable=True, index=True)
    user_id = Column(String(36), nullable=True, index=True)  # recipient
    type = Column(String(30), nullable=False, default=NotificationType.GENERAL.value, index=True)
    priority = Column(String(20), nullable=False, default=TaskPriority.MEDIUM.value)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=True)
    read = Column(Boolean, nullable=False, default=False)
    details = Column(JSON, nullable=False, default=dict)
    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)
