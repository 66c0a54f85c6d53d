"""
Platform-wide analytics, financial reports and health data for the superadmin
surface, plus the community reports behind /functions/v1/clan-analytics
"""
import time
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clanchain.core.logging_config import LoggingConfig
from clanchain.models.billing import (Payment, PaymentStatus, ServicePackage,
                                      Subscription)
from clanchain.models.clan import Clan, CovenantStatus, Member, MemberRole
from clanchain.models.community import CommunityInsight, Task, TaskStatus
from clanchain.models.dispute import Dispute
from clanchain.models.ethics import (EthicsEntry, EthicsEntryStatus, EthicsRule,
                                     EthicsRuleStatus)
from clanchain.models.rite import Rite
from clanchain.models.user import Profile
from clanchain.models.vault import Vault
from clanchain.utils.datetime_utils import timeframe_start, utc_now, utc_now_iso

logger = LoggingConfig.get_logger(__name__)

UNKNOWN_PACKAGE = "Unknown"
DIASPORA_TAG = "diaspora"
PULSE_LIMIT = 100
YOUTH_TASK_LIMIT = 500

# Sentiment at or beyond these bounds counts as positive / negative
POSITIVE_SENTIMENT = 0.1
NEGATIVE_SENTIMENT = -0.1


def growth_rate(created: List[datetime]) -> float:
    """
    Percent change between the last seven sign-ups and the seven before them

    Mirrors the dashboard's rolling comparison; fewer than two points gives 0.
    """
    if len(created) < 2:
        return 0.0
    recent = len(created[-7:])
    previous = len(created[-14:-7])
    if previous == 0:
        return 0.0
    return (recent - previous) / previous * 100


def _money(value: Any) -> float:
    return float(value or 0)


class PlatformAnalyticsService:
    """Read-only aggregates over the whole platform"""

    def __init__(self, db: Session):
        self.db = db

    # Analytics

    def platform_stats(self, timeframe: str = "30d") -> Dict[str, Any]:
        return {
            "total_users": self.db.query(func.count(Profile.id)).scalar(),
            "active_clans": self.db.query(func.count(Clan.id)).filter(
                Clan.covenant_status == CovenantStatus.ACTIVE.value
            ).scalar(),
            "total_disputes": self.db.query(func.count(Dispute.id)).scalar(),
            "total_rites": self.db.query(func.count(Rite.id)).scalar(),
            "timestamp": utc_now_iso(),
        }

    def user_metrics(self, timeframe: str = "30d") -> Dict[str, Any]:
        since = timeframe_start(timeframe)
        created = [
            created_at for (created_at,) in self.db.query(Profile.created_at)
            .filter(Profile.created_at >= since)
            .order_by(Profile.created_at)
        ]
        return {
            "user_growth": [{"created_at": c.isoformat()} for c in created],
            "growth_rate": growth_rate(created),
        }

    def financial_metrics(self, timeframe: str = "30d") -> Dict[str, Any]:
        payments = self._payments(timeframe, status=PaymentStatus.SUCCESS.value)
        total = sum(_money(p.amount) for p in payments)
        return {
            "total_revenue": total,
            "payment_count": len(payments),
            "average_payment": total / len(payments) if payments else 0,
        }

    def engagement_metrics(self, timeframe: str = "30d") -> Dict[str, Any]:
        since = timeframe_start(timeframe)
        return {
            "active_tasks": self.db.query(func.count(Task.id)).filter(Task.created_at >= since).scalar(),
            "recent_insights": self.db.query(func.count(CommunityInsight.id)).filter(
                CommunityInsight.created_at >= since
            ).scalar(),
            "new_members": self.db.query(func.count(Profile.id)).filter(Profile.created_at >= since).scalar(),
        }

    def analytics(self, timeframe: str = "30d") -> Dict[str, Any]:
        return {
            "platform_stats": self.platform_stats(timeframe),
            "user_metrics": self.user_metrics(timeframe),
            "financial_metrics": self.financial_metrics(timeframe),
            "engagement_metrics": self.engagement_metrics(timeframe),
        }

    # Financial reports

    def revenue_summary(self, timeframe: str = "30d") -> Dict[str, Any]:
        payments = self._payments(timeframe, status=PaymentStatus.SUCCESS.value)
        by_package: Dict[str, float] = defaultdict(float)
        for payment in payments:
            by_package[self._package_name(payment.subscription)] += _money(payment.amount)
        return {
            "total_revenue": sum(_money(p.amount) for p in payments),
            "by_provider": self._by_provider(payments),
            "by_package": dict(by_package),
        }

    def payment_breakdown(self, timeframe: str = "30d") -> List[Dict[str, Any]]:
        return [
            {
                "payment_provider": p.payment_provider,
                "status": p.status,
                "amount": _money(p.amount),
                "created_at": p.created_at.isoformat(),
            }
            for p in self._payments(timeframe)
        ]

    def subscription_analytics(self, timeframe: str = "30d") -> Dict[str, Any]:
        by_status: Dict[str, int] = defaultdict(int)
        by_package: Dict[str, int] = defaultdict(int)
        for sub in self.db.query(Subscription).all():
            by_status[sub.status] += 1
            by_package[self._package_name(sub)] += 1
        return {"by_status": dict(by_status), "by_package": dict(by_package)}

    def refund_analysis(self, timeframe: str = "30d") -> Dict[str, Any]:
        refunds = self._payments(timeframe, status=PaymentStatus.REFUNDED.value)
        return {
            "total_refunds": sum(_money(p.amount) for p in refunds),
            "refund_count": len(refunds),
            "by_provider": self._by_provider(refunds),
        }

    def financial_reports(self, timeframe: str = "30d") -> Dict[str, Any]:
        return {
            "revenue_summary": self.revenue_summary(timeframe),
            "payment_breakdown": self.payment_breakdown(timeframe),
            "subscription_analytics": self.subscription_analytics(timeframe),
            "refund_analysis": self.refund_analysis(timeframe),
        }

    # Clan reports

    def community_pulse(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        clan_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Latest insights and their sentiment split per topic"""
        query = self._in_range(self.db.query(CommunityInsight), CommunityInsight, start, end, clan_id)
        insights = query.order_by(CommunityInsight.created_at.desc()).limit(PULSE_LIMIT).all()

        trends: Dict[str, Dict[str, int]] = {}
        for insight in insights:
            topic = trends.setdefault(
                insight.topic or "general", {"positive": 0, "neutral": 0, "negative": 0, "total": 0}
            )
            score = insight.sentiment_score or 0
            if score > POSITIVE_SENTIMENT:
                topic["positive"] += 1
            elif score < NEGATIVE_SENTIMENT:
                topic["negative"] += 1
            else:
                topic["neutral"] += 1
            topic["total"] += 1

        return {
            "insights": [i.to_dict() for i in insights],
            "sentiment_trends": trends,
            "total_insights": len(insights),
            "date_range": {
                "start": start.isoformat() if start else None,
                "end": end.isoformat() if end else None,
            },
        }

    def vault_summary(self, clan_id: Optional[str] = None) -> Dict[str, Any]:
        query = self.db.query(Vault)
        if clan_id:
            query = query.filter(Vault.clan_id == clan_id)
        vaults = query.all()

        by_type: Dict[str, float] = defaultdict(float)
        contributors = set()
        for vault in vaults:
            by_type[vault.vault_type] += _money(vault.balance)
            contributors.update(vault.contributors or [])
        return {
            "total_vaults": len(vaults),
            "total_balance": sum(_money(v.balance) for v in vaults),
            "balance_by_type": dict(by_type),
            "total_contributors": len(contributors),
            "clans_with_vaults": len({v.clan_id for v in vaults}),
        }

    def youth_progress(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        clan_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        query = self._in_range(self.db.query(Task), Task, start, end, clan_id)
        tasks = query.order_by(Task.created_at.desc()).limit(YOUTH_TASK_LIMIT).all()

        by_status: Dict[str, int] = defaultdict(int)
        by_priority: Dict[str, int] = defaultdict(int)
        for task in tasks:
            by_status[task.status] += 1
            by_priority[task.priority] += 1
        completed = by_status[TaskStatus.COMPLETED.value]
        return {
            "total_tasks": len(tasks),
            "completed_tasks": completed,
            "pending_tasks": by_status[TaskStatus.PENDING.value],
            "in_progress_tasks": by_status[TaskStatus.IN_PROGRESS.value],
            "completion_rate": round(completed / len(tasks) * 100, 2) if tasks else 0,
            "tasks_by_priority": dict(by_priority),
        }

    def ethics_compliance(self, clan_id: Optional[str] = None) -> Dict[str, Any]:
        """Active rules per category and the state of the ethics ledger"""
        rules = self.db.query(EthicsRule).filter(EthicsRule.status == EthicsRuleStatus.ACTIVE.value)
        entries = self.db.query(EthicsEntry)
        if clan_id:
            rules = rules.filter(EthicsRule.clan_id == clan_id)
            entries = entries.filter(EthicsEntry.clan_id == clan_id)
        rules = rules.all()
        entries = entries.all()

        by_category: Dict[str, int] = defaultdict(int)
        for rule in rules:
            by_category[rule.category or "general"] += 1
        by_type: Dict[str, int] = defaultdict(int)
        for entry in entries:
            by_type[entry.type] += 1
        return {
            "total_active_rules": len(rules),
            "rules_by_category": dict(by_category),
            "entries_by_type": dict(by_type),
            "pending_entries": sum(1 for e in entries if e.status == EthicsEntryStatus.PENDING.value),
            "average_impact": round(sum(e.impact_score for e in entries) / len(entries), 2) if entries else 0,
        }

    def diaspora_engagement(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Users tagged `diaspora` in their focus areas or holding a diaspora
        membership in any clan
        """
        diaspora_users = select(Member.user_id).where(
            Member.role == MemberRole.DIASPORA.value, Member.user_id.isnot(None)
        )
        query = self.db.query(Profile).filter(or_(
            ("," + Profile.focus_areas + ",").like(f"%,{DIASPORA_TAG},%"),
            Profile.id.in_(diaspora_users),
        ))
        if start:
            query = query.filter(Profile.created_at >= start)
        if end:
            query = query.filter(Profile.created_at <= end)

        memberships: Dict[str, int] = defaultdict(int)
        for (clan_id,) in self.db.query(Member.clan_id).filter(Member.role == MemberRole.DIASPORA.value):
            memberships[clan_id] += 1
        return {
            "total_diaspora_members": query.count(),
            "recent_registrations": query.filter(
                Profile.created_at >= utc_now() - timedelta(days=30)
            ).count(),
            "memberships_by_clan": dict(memberships),
        }

    def overview(self, clan_id: Optional[str] = None) -> Dict[str, Any]:
        if clan_id:
            members = self.db.query(func.count(Member.id)).filter(Member.clan_id == clan_id)
        else:
            members = self.db.query(func.count(Profile.id))
        counts = {
            "total_tasks": self.db.query(func.count(Task.id)),
            "active_ethics_rules": self.db.query(func.count(EthicsRule.id)).filter(
                EthicsRule.status == EthicsRuleStatus.ACTIVE.value
            ),
            "community_insights": self.db.query(func.count(CommunityInsight.id)),
        }
        if clan_id:
            counts["total_tasks"] = counts["total_tasks"].filter(Task.clan_id == clan_id)
            counts["active_ethics_rules"] = counts["active_ethics_rules"].filter(EthicsRule.clan_id == clan_id)
            counts["community_insights"] = counts["community_insights"].filter(
                CommunityInsight.clan_id == clan_id
            )
        result = {"total_members": members.scalar() or 0}
        result.update({name: query.scalar() or 0 for name, query in counts.items()})
        result["platform_health"] = "active"
        result["last_updated"] = utc_now_iso()
        return result

    # Health

    def database_health(self) -> Dict[str, Any]:
        start = time.perf_counter()
        try:
            self.db.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}", exc_info=True)
            return {"status": "unhealthy", "error": str(e), "timestamp": utc_now_iso()}
        return {
            "status": "healthy",
            "response_time_ms": round((time.perf_counter() - start) * 1000, 2),
            "timestamp": utc_now_iso(),
        }

    def user_activity(self) -> Dict[str, Any]:
        since = utc_now() - timedelta(hours=24)
        active = self.db.query(func.count(Profile.id)).filter(Profile.last_sign_in_at >= since).scalar()
        return {"active_users_24h": active or 0}

    def system_health(self) -> Dict[str, Any]:
        log_counts = LoggingConfig.get_metrics()
        return {
            "database_status": self.database_health(),
            "user_activity": self.user_activity(),
            "error_rates": {
                "errors_logged": log_counts.get("ERROR", 0),
                "critical_errors": log_counts.get("CRITICAL", 0),
                "warnings": log_counts.get("WARNING", 0),
            },
        }

    @staticmethod
    def _in_range(query, model, start, end, clan_id):
        if clan_id:
            query = query.filter(model.clan_id == clan_id)
        if start:
            query = query.filter(model.created_at >= start)
        if end:
            query = query.filter(model.created_at <= end)
        return query

    def _payments(self, timeframe: str, status: Optional[str] = None) -> List[Payment]:
        query = self.db.query(Payment).filter(Payment.created_at >= timeframe_start(timeframe))
        if status:
            query = query.filter(Payment.status == status)
        return query.order_by(Payment.created_at).all()

    @staticmethod
    def _by_provider(payments: List[Payment]) -> Dict[str, float]:
        totals: Dict[str, float] = defaultdict(float)
        for payment in payments:
            totals[payment.payment_provider] += _money(payment.amount)
        return dict(totals)

    @staticmethod
    def _package_name(subscription: Optional[Subscription]) -> str:
        package: Optional[ServicePackage] = subscription.package if subscription else None
        return package.name if package else UNKNOWN_PACKAGE
