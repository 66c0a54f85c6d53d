"""
Resources served by /functions/v1/clan-api/{resource}
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.orm import Query, Session

from clanchain.core.auth import Identity
from clanchain.core.exceptions import ValidationError
from clanchain.functions.registry import (DeleteMode, ResourceHandler,
                                          ResourceRegistry)
from clanchain.models.community import (CommunityInsight, CulturalMemory,
                                       Notification, NotificationType, Task,
                                       TaskPriority)
from clanchain.models.ethics import EthicsEntry, EthicsRule, EthicsRuleStatus
from clanchain.models.user import Profile
from clanchain.models.vault import Vault
from clanchain.utils.sql_utils import LIKE_ESCAPE, escape_like

FAMILY_TREE_TAG = "family_tree"

VaultTypeName = Literal["education", "health", "funeral", "legal", "emergency"]
TaskStatusName = Literal["pending", "in_progress", "completed", "cancelled"]
TaskPriorityName = Literal["low", "medium", "high", "urgent"]
EthicsEntryTypeName = Literal["contribution", "violation", "recognition"]
EthicsEntryStatusName = Literal["pending", "approved"]
NotificationTypeName = Literal[
    "elder_alert", "youth_task", "vault_update", "ethics_update", "diaspora_update", "general"
]

# Keyword groups used to type a notification posted without one; first match wins
NOTIFICATION_KEYWORDS = (
    (NotificationType.ELDER_ALERT, ("elder", "council")),
    (NotificationType.YOUTH_TASK, ("task", "youth")),
    (NotificationType.VAULT_UPDATE, ("vault", "fund")),
    (NotificationType.ETHICS_UPDATE, ("rule", "ethics")),
    (NotificationType.DIASPORA_UPDATE, ("diaspora", "abroad")),
)


class _Payload(BaseModel):
    model_config = ConfigDict(extra="forbid")


def _join_tags(value: Union[str, List[str], None]) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    return ",".join(tag.strip() for tag in value if tag and tag.strip())


class _ProfileFields(_Payload):
    """focus_areas is stored as a comma-separated tag string"""
    full_name: Optional[str] = None
    focus_areas: Optional[Union[str, List[str]]] = None

    @field_validator("focus_areas")
    @classmethod
    def join_focus_areas(cls, value):
        return _join_tags(value)


class ProfileCreate(_ProfileFields):
    email: str = Field(..., min_length=3, max_length=255)


class ProfileUpdate(_ProfileFields):
    pass


class FamilyMemberCreate(ProfileCreate):
    focus_areas: Optional[Union[str, List[str]]] = FAMILY_TREE_TAG


class VaultCreate(_Payload):
    clan_id: str
    name: Optional[str] = None
    vault_type: VaultTypeName = "emergency"
    currency: str = "USD"
    rules: Dict[str, Any] = Field(default_factory=dict)
    target_amount: Optional[Decimal] = Field(default=None, ge=0)


class VaultUpdate(_Payload):
    """Balance and contributors change only through contributions and withdrawals"""
    name: Optional[str] = None
    vault_type: Optional[VaultTypeName] = None
    currency: Optional[str] = None
    rules: Optional[Dict[str, Any]] = None
    target_amount: Optional[Decimal] = Field(default=None, ge=0)


class EthicsRuleCreate(_Payload):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    clan_id: Optional[str] = None
    created_by: Optional[str] = None


class EthicsRuleUpdate(_Payload):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    status: Optional[Literal["active", "archived"]] = None


class InsightCreate(_Payload):
    content: str = Field(..., min_length=1)
    topic: Optional[str] = None
    sentiment_score: Optional[float] = None
    clan_id: Optional[str] = None
    created_by: Optional[str] = None


class InsightUpdate(_Payload):
    content: Optional[str] = Field(default=None, min_length=1)
    topic: Optional[str] = None
    sentiment_score: Optional[float] = None


class TaskCreate(_Payload):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    user_id: Optional[str] = None
    clan_id: Optional[str] = None
    status: TaskStatusName = "pending"
    priority: TaskPriorityName = "medium"
    due_date: Optional[datetime] = None
    created_by: Optional[str] = None


class TaskUpdate(_Payload):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    user_id: Optional[str] = None
    status: Optional[TaskStatusName] = None
    priority: Optional[TaskPriorityName] = None
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class CulturalMemoryCreate(_Payload):
    title: str = Field(..., min_length=1, max_length=255)
    memory_type: str = "story"
    content: Optional[str] = None
    media_url: Optional[str] = None
    clan_id: Optional[str] = None
    contributed_by: Optional[str] = None


class CulturalMemoryUpdate(_Payload):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    memory_type: Optional[str] = None
    content: Optional[str] = None
    media_url: Optional[str] = None


class EthicsEntryCreate(_Payload):
    clan_id: str
    member_id: str = Field(..., min_length=1)
    type: EthicsEntryTypeName
    description: Optional[str] = None
    impact_score: int = 0
    witness: Optional[str] = None
    status: EthicsEntryStatusName = "pending"


class EthicsEntryUpdate(_Payload):
    description: Optional[str] = None
    impact_score: Optional[int] = None
    witness: Optional[str] = None
    status: Optional[EthicsEntryStatusName] = None


class NotificationCreate(_Payload):
    title: Optional[str] = Field(default=None, max_length=255)
    message: Optional[str] = None
    user_id: Optional[str] = None
    clan_id: Optional[str] = None
    type: Optional[NotificationTypeName] = None
    priority: TaskPriorityName = "medium"
    details: Dict[str, Any] = Field(default_factory=dict)


class NotificationUpdate(_Payload):
    read: Optional[bool] = None
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    message: Optional[str] = None


def classify_notification(text: str) -> NotificationType:
    lowered = text.lower()
    for kind, keywords in NOTIFICATION_KEYWORDS:
        if any(word in lowered for word in keywords):
            return kind
    return NotificationType.GENERAL


class FamilyTreeHandler(ResourceHandler):
    """Profiles tagged into a family; `family_id` narrows by tag"""

    def apply_filters(self, query: Query, params: Mapping[str, str]) -> Query:
        query = super().apply_filters(query, params)
        family_id = params.get("family_id")
        if family_id:
            # focus_areas is a comma-separated tag list
            padded = "," + Profile.focus_areas + ","
            query = query.filter(padded.like(f"%,{escape_like(family_id)},%", escape=LIKE_ESCAPE))
        return query


class NotificationsHandler(ResourceHandler):
    """
    Per-user notifications.

    Lists come back as `{notifications, total_count, unread_count}`; PUT is
    how a notification is marked read. Elder alerts and high-priority
    notifications are also recorded as a community insight.
    """

    def handle(self, method, db, params, body=None, identity=None):
        if method.upper() == "GET" and not params.get(self.id_param):
            rows = [row.to_dict() for row in self.list_rows(db, params)]
            return 200, {
                "notifications": rows,
                "total_count": len(rows),
                "unread_count": sum(1 for row in rows if not row["read"]),
            }
        return super().handle(method, db, params, body=body, identity=identity)

    def apply_filters(self, query: Query, params: Mapping[str, str]) -> Query:
        query = super().apply_filters(query, params)
        if params.get("unread_only") == "true":
            query = query.filter(Notification.read.is_(False))
        return query

    def create_row(self, db: Session, body: Any, identity: Optional[Identity]) -> Notification:
        values = self._validate(self.create_schema, body, partial=False)
        text = values.get("message") or values.get("title")
        if not text:
            raise ValidationError("Notification requires a title or message")

        if not values.get("title"):
            words = text.split()
            values["title"] = " ".join(words[:5]) + ("..." if len(words) > 5 else "")
        if not values.get("type"):
            values["type"] = classify_notification(text).value
        if identity:
            values["created_by"] = identity.user_id

        row = Notification(**values)
        db.add(row)
        high_priority = values["priority"] in (TaskPriority.HIGH.value, TaskPriority.URGENT.value)
        if values["type"] == NotificationType.ELDER_ALERT.value or high_priority:
            db.add(CommunityInsight(
                clan_id=values.get("clan_id"),
                topic=values["type"],
                content=text,
                sentiment_score=-0.5 if high_priority else 0.0,
                created_by=values.get("created_by"),
            ))
        self._commit(db)
        db.refresh(row)
        return row


def build_clan_api_registry() -> ResourceRegistry:
    registry = ResourceRegistry()

    registry.register(ResourceHandler(
        name="profiles",
        model=Profile,
        label="Profile",
        id_param="user_id",
        create_schema=ProfileCreate,
        update_schema=ProfileUpdate,
    ))
    registry.register(FamilyTreeHandler(
        name="family-tree",
        model=Profile,
        label="Family member",
        create_schema=FamilyMemberCreate,
        methods=frozenset({"GET", "POST"}),
        default_limit=100,
    ))
    registry.register(ResourceHandler(
        name="clan-vault",
        model=Vault,
        label="Vault",
        id_param="vault_id",
        create_schema=VaultCreate,
        update_schema=VaultUpdate,
        filters={"clan_id": "clan_id", "type": "vault_type"},
        methods=frozenset({"GET", "POST", "PUT"}),
        default_limit=20,
    ))
    registry.register(ResourceHandler(
        name="ethics-rules",
        model=EthicsRule,
        label="Rule",
        id_param="rule_id",
        create_schema=EthicsRuleCreate,
        update_schema=EthicsRuleUpdate,
        filters={"clan_id": "clan_id"},
        base_filters={"status": EthicsRuleStatus.ACTIVE.value},
        delete_mode=DeleteMode.SOFT,
        soft_delete_values={"status": EthicsRuleStatus.ARCHIVED.value},
        owner_field="created_by",
    ))
    registry.register(ResourceHandler(
        name="community-insights",
        model=CommunityInsight,
        label="Insight",
        id_param="insight_id",
        create_schema=InsightCreate,
        update_schema=InsightUpdate,
        filters={"topic": "topic", "clan_id": "clan_id"},
        methods=frozenset({"GET", "POST", "PUT"}),
        owner_field="created_by",
    ))
    registry.register(ResourceHandler(
        name="youth-tasks",
        model=Task,
        label="Task",
        id_param="task_id",
        create_schema=TaskCreate,
        update_schema=TaskUpdate,
        filters={"user_id": "user_id", "clan_id": "clan_id"},
        owner_field="created_by",
    ))
    registry.register(ResourceHandler(
        name="cultural-memory",
        model=CulturalMemory,
        label="Memory",
        id_param="memory_id",
        create_schema=CulturalMemoryCreate,
        update_schema=CulturalMemoryUpdate,
        filters={"type": "memory_type", "clan_id": "clan_id"},
        owner_field="contributed_by",
    ))
    registry.register(ResourceHandler(
        name="ethics-entries",
        model=EthicsEntry,
        label="Entry",
        id_param="entry_id",
        create_schema=EthicsEntryCreate,
        update_schema=EthicsEntryUpdate,
        filters={"clan_id": "clan_id", "member_id": "member_id", "type": "type", "status": "status"},
        methods=frozenset({"GET", "POST", "PUT"}),
    ))
    registry.register(NotificationsHandler(
        name="notifications",
        model=Notification,
        label="Notification",
        id_param="id",
        create_schema=NotificationCreate,
        update_schema=NotificationUpdate,
        filters={"user_id": "user_id", "type": "type", "clan_id": "clan_id"},
        methods=frozenset({"GET", "POST", "PUT"}),
    ))

    return registry


clan_api_registry = build_clan_api_registry()
