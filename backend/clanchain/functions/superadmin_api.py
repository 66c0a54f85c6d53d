"""
Actions served by /functions/v1/superadmin-api/{action}

The caller has already passed the superadmin gate when anything here runs.
Every successful mutation is followed by exactly one audit_logs row.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from clanchain.core.auth import Identity
from clanchain.core.config import get_settings
from clanchain.core.exceptions import (ClanChainError, MethodNotAllowedError,
                                       NotFoundError, ValidationError)
from clanchain.core.logging_config import LoggingConfig
from clanchain.core.metrics import superadmin_actions_total
from clanchain.models.audit import SystemConfig
from clanchain.models.billing import (Payment, PaymentStatus, Subscription,
                                      SubscriptionStatus)
from clanchain.models.clan import Clan, CovenantStatus, Member
from clanchain.models.community import Task
from clanchain.models.dispute import Dispute
from clanchain.models.ethics import EthicsRule
from clanchain.models.user import AppRole, Profile, ProfileStatus
from clanchain.services.audit_service import AuditService
from clanchain.services.auth_service import AuthService
from clanchain.services.platform_analytics import PlatformAnalyticsService
from clanchain.utils.datetime_utils import parse_datetime

logger = LoggingConfig.get_logger(__name__)

LIST_LIMIT = 100


@dataclass
class SuperadminRequest:
    """Everything an action sees about the call"""
    method: str
    identity: Identity
    params: Mapping[str, str] = field(default_factory=dict)
    body: Any = None

    def body_dict(self) -> Dict[str, Any]:
        if not isinstance(self.body, dict):
            raise ValidationError("Request body must be a JSON object")
        return self.body

    def sub_action(self) -> Optional[str]:
        """Mutation name from ?action= or the body's "action" field"""
        if self.params.get("action"):
            return self.params["action"]
        if isinstance(self.body, dict):
            return self.body.get("action")
        return None


def _required(body: Dict[str, Any], key: str) -> Any:
    value = body.get(key)
    if not value:
        raise ValidationError(f"'{key}' is required")
    return value


def _person(profile: Optional[Profile]) -> Optional[Dict[str, Any]]:
    if profile is None:
        return None
    return {"email": profile.email, "full_name": profile.full_name}


class SuperadminAction:
    """Base action; verbs not overridden answer 405"""
    name: str = ""

    def get(self, db: Session, request: SuperadminRequest) -> Any:
        raise MethodNotAllowedError()

    def post(self, db: Session, request: SuperadminRequest) -> Any:
        raise MethodNotAllowedError()

    def handle(self, db: Session, request: SuperadminRequest) -> Any:
        method = request.method.upper()
        if method == "GET":
            return self.get(db, request)
        if method == "POST":
            return self.post(db, request)
        raise MethodNotAllowedError()


class AuditedAction(SuperadminAction):
    """
    Action whose POST runs a named mutation and then writes one audit row.

    Subclasses fill `mutations` with sub-action -> (handler method name,
    audit action name). The handler commits its own change; the audit row is
    written afterwards in a separate commit.
    """
    mutations: Dict[str, tuple] = {}

    def post(self, db: Session, request: SuperadminRequest) -> Any:
        sub_action = request.sub_action()
        if sub_action not in self.mutations:
            raise ValidationError(f"Unknown {self.name} action '{sub_action}'")

        method_name, audit_action = self.mutations[sub_action]
        body = request.body_dict()
        mutate: Callable[[Session, Dict[str, Any], Identity], Any] = getattr(self, method_name)
        result = mutate(db, body, request.identity)

        AuditService(db).log_action(
            audit_action,
            details=dict(body),
            user_id=request.identity.user_id,
            ip_address=request.identity.ip_address,
            user_agent=request.identity.user_agent,
        )
        logger.info(
            f"Superadmin mutation {audit_action}",
            extra={"audit_action": audit_action, "actor_id": request.identity.user_id},
        )
        return result if result is not None else {"success": True}


class AnalyticsAction(SuperadminAction):
    name = "analytics"

    def get(self, db: Session, request: SuperadminRequest) -> Any:
        timeframe = request.params.get("timeframe") or "30d"
        analytics = PlatformAnalyticsService(db).analytics(timeframe)
        metric = request.params.get("metric")
        if metric:
            return analytics.get(metric, {})
        return analytics


class UserManagementAction(AuditedAction):
    name = "user-management"
    mutations = {
        "suspend": ("_suspend", "user_suspended"),
        "activate": ("_activate", "user_activated"),
        "change_role": ("_change_role", "role_changed"),
    }

    def get(self, db: Session, request: SuperadminRequest) -> Any:
        user_id = request.params.get("user_id")
        if user_id:
            profile = self._profile(db, user_id)
            data = profile.to_dict()
            data["user_roles"] = [{"role": role} for role in profile.role_names]
            data["subscriptions"] = [
                s.to_dict() for s in db.query(Subscription).filter(Subscription.user_id == user_id)
            ]
            return data

        users: List[Dict[str, Any]] = []
        for profile in db.query(Profile).order_by(Profile.created_at.desc()).limit(LIST_LIMIT):
            data = profile.to_dict()
            data["user_roles"] = [{"role": role} for role in profile.role_names]
            data["subscriptions"] = [
                {"status": s.status, "package_id": s.package_id}
                for s in db.query(Subscription).filter(Subscription.user_id == profile.id)
            ]
            users.append(data)
        return users

    @staticmethod
    def _profile(db: Session, user_id: str) -> Profile:
        profile = db.get(Profile, user_id)
        if profile is None:
            raise NotFoundError(f"User {user_id} not found")
        return profile

    def _set_status(self, db: Session, body: Dict[str, Any], status: str):
        profile = self._profile(db, _required(body, "user_id"))
        profile.status = status
        db.commit()

    def _suspend(self, db: Session, body: Dict[str, Any], identity: Identity):
        self._set_status(db, body, ProfileStatus.SUSPENDED.value)

    def _activate(self, db: Session, body: Dict[str, Any], identity: Identity):
        self._set_status(db, body, ProfileStatus.ACTIVE.value)

    def _change_role(self, db: Session, body: Dict[str, Any], identity: Identity):
        profile = self._profile(db, _required(body, "user_id"))
        new_role = _required(body, "new_role")
        try:
            role = AppRole(new_role)
        except ValueError:
            raise ValidationError(f"Unknown role '{new_role}'")
        AuthService(db).grant_role(profile.id, role, assigned_by=identity.user_id)


class SubscriptionManagementAction(AuditedAction):
    name = "subscription-management"
    mutations = {
        "cancel": ("_cancel", "subscription_cancel"),
        "refund": ("_refund", "subscription_refund"),
    }

    def get(self, db: Session, request: SuperadminRequest) -> Any:
        subscription_id = request.params.get("subscription_id")
        if subscription_id:
            return self._describe(db, self._subscription(db, subscription_id))
        query = db.query(Subscription).order_by(Subscription.created_at.desc()).limit(LIST_LIMIT)
        return [self._describe(db, s) for s in query]

    @staticmethod
    def _describe(db: Session, subscription: Subscription) -> Dict[str, Any]:
        data = subscription.to_dict()
        data["profiles"] = _person(db.get(Profile, subscription.user_id))
        package = subscription.package
        data["service_packages"] = (
            {"name": package.name, "price_monthly": float(package.price_monthly)} if package else None
        )
        data["payments"] = [p.to_dict() for p in subscription.payments]
        return data

    @staticmethod
    def _subscription(db: Session, subscription_id: str) -> Subscription:
        subscription = db.get(Subscription, subscription_id)
        if subscription is None:
            raise NotFoundError(f"Subscription {subscription_id} not found")
        return subscription

    def _cancel(self, db: Session, body: Dict[str, Any], identity: Identity):
        subscription = self._subscription(db, _required(body, "subscription_id"))
        subscription.status = SubscriptionStatus.CANCELLED.value
        db.commit()

    def _refund(self, db: Session, body: Dict[str, Any], identity: Identity):
        subscription = self._subscription(db, _required(body, "subscription_id"))
        refunded = (
            db.query(Payment)
            .filter(Payment.subscription_id == subscription.id, Payment.status == PaymentStatus.SUCCESS.value)
            .update({Payment.status: PaymentStatus.REFUNDED.value}, synchronize_session=False)
        )
        db.commit()
        return {"success": True, "refunded_payments": refunded}


class SystemConfigAction(AuditedAction):
    """
    GET lists every setting; POST upserts one `{key, value}` object or a list
    of them. There is a single mutation, so `action` is not required.
    """
    name = "system-config"
    mutations = {None: ("_upsert", "config_updated"), "upsert": ("_upsert", "config_updated")}

    def get(self, db: Session, request: SuperadminRequest) -> Any:
        return [row.to_dict() for row in db.query(SystemConfig).order_by(SystemConfig.key)]

    def post(self, db: Session, request: SuperadminRequest) -> Any:
        if isinstance(request.body, list):
            request = SuperadminRequest(
                method=request.method,
                identity=request.identity,
                params=request.params,
                body={"entries": request.body},
            )
        return super().post(db, request)

    def _upsert(self, db: Session, body: Dict[str, Any], identity: Identity):
        entries = body.get("entries") if "entries" in body else [body]
        if not isinstance(entries, list) or not entries:
            raise ValidationError("No configuration entries given")

        for entry in entries:
            if not isinstance(entry, dict):
                raise ValidationError("Configuration entries must be objects")
            key = _required(entry, "key")
            if "value" not in entry:
                raise ValidationError(f"'value' is required for '{key}'")

            row = db.query(SystemConfig).filter(SystemConfig.key == key).first()
            if row is None:
                row = SystemConfig(key=key)
                db.add(row)
            row.value = entry["value"]
            if "description" in entry:
                row.description = entry["description"]
            row.updated_by = identity.user_id
        db.commit()


class AuditLogsAction(SuperadminAction):
    name = "audit-logs"

    def get(self, db: Session, request: SuperadminRequest) -> Any:
        params = request.params
        try:
            start = parse_datetime(params.get("start_date"))
            end = parse_datetime(params.get("end_date"))
        except ValueError as e:
            raise ValidationError(f"Invalid date filter: {e}")

        cap = get_settings().audit_log_max_page_size
        try:
            limit = min(int(params.get("limit") or cap), cap)
        except ValueError:
            raise ValidationError(f"Invalid limit '{params.get('limit')}'")

        logs = AuditService(db).list_logs(
            user_id=params.get("user_id"),
            action=params.get("action"),
            start_date=start,
            end_date=end,
            limit=max(limit, 1),
        )
        result = []
        for log in logs:
            data = log.to_dict()
            data["profiles"] = _person(db.get(Profile, log.user_id)) if log.user_id else None
            result.append(data)
        return result


class ClanOversightAction(AuditedAction):
    name = "clan-oversight"
    mutations = {
        "suspend": ("_suspend", "clan_suspend"),
        "verify": ("_verify", "clan_verify"),
    }

    def get(self, db: Session, request: SuperadminRequest) -> Any:
        clan_id = request.params.get("clan_id")
        if clan_id:
            clan = self._clan(db, clan_id)
            data = self._describe(db, clan)
            data["ethics_rules"] = [{"count": self._count(db, EthicsRule.id, EthicsRule.clan_id, clan_id)}]
            data["tasks"] = [{"count": self._count(db, Task.id, Task.clan_id, clan_id)}]
            data["member_count"] = self._count(db, Member.id, Member.clan_id, clan_id)
            data["dispute_count"] = self._count(db, Dispute.id, Dispute.clan_id, clan_id)
            return data
        clans = db.query(Clan).order_by(Clan.created_at.desc()).limit(LIST_LIMIT)
        return [self._describe(db, clan) for clan in clans]

    @staticmethod
    def _count(db: Session, id_column, clan_column, clan_id: str) -> int:
        return db.query(func.count(id_column)).filter(clan_column == clan_id).scalar()

    @staticmethod
    def _describe(db: Session, clan: Clan) -> Dict[str, Any]:
        data = clan.to_dict()
        data["founder"] = _person(db.get(Profile, clan.founder_id)) if clan.founder_id else None
        return data

    @staticmethod
    def _clan(db: Session, clan_id: str) -> Clan:
        clan = db.get(Clan, clan_id)
        if clan is None:
            raise NotFoundError(f"Clan {clan_id} not found")
        return clan

    def _suspend(self, db: Session, body: Dict[str, Any], identity: Identity):
        clan = self._clan(db, _required(body, "clan_id"))
        clan.covenant_status = CovenantStatus.SUSPENDED.value
        db.commit()

    def _verify(self, db: Session, body: Dict[str, Any], identity: Identity):
        clan = self._clan(db, _required(body, "clan_id"))
        clan.verified = True
        db.commit()


class FinancialReportsAction(SuperadminAction):
    name = "financial-reports"

    def get(self, db: Session, request: SuperadminRequest) -> Any:
        timeframe = request.params.get("timeframe") or "30d"
        reports = PlatformAnalyticsService(db).financial_reports(timeframe)
        report_type = request.params.get("type") or "summary"
        return reports.get(report_type, reports)


class SystemHealthAction(SuperadminAction):
    name = "system-health"

    def get(self, db: Session, request: SuperadminRequest) -> Any:
        return PlatformAnalyticsService(db).system_health()


class SuperadminRegistry:
    """Action name -> handler"""

    def __init__(self):
        self._actions: Dict[str, SuperadminAction] = {}

    def register(self, action: SuperadminAction) -> SuperadminAction:
        if action.name in self._actions:
            raise ValueError(f"Superadmin action '{action.name}' already registered")
        self._actions[action.name] = action
        return action

    def names(self) -> List[str]:
        return sorted(self._actions)

    def dispatch(self, name: str, db: Session, request: SuperadminRequest) -> Any:
        action = self._actions.get(name)
        if action is None:
            raise NotFoundError("Endpoint not found")

        logger.info(
            f"Superadmin {request.method} request to {name}",
            extra={"superadmin_action": name, "actor_id": request.identity.user_id},
        )
        try:
            result = action.handle(db, request)
        except ClanChainError:
            superadmin_actions_total.labels(action=name, method=request.method, status="error").inc()
            raise
        superadmin_actions_total.labels(action=name, method=request.method, status="success").inc()
        return result


def build_superadmin_registry() -> SuperadminRegistry:
    registry = SuperadminRegistry()
    for action in (
        AnalyticsAction(),
        UserManagementAction(),
        SubscriptionManagementAction(),
        SystemConfigAction(),
        AuditLogsAction(),
        ClanOversightAction(),
        FinancialReportsAction(),
        SystemHealthAction(),
    ):
        registry.register(action)
    return registry


superadmin_registry = build_superadmin_registry()
