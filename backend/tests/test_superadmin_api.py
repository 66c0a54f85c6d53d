"""
Tests for the /functions/v1/superadmin-api surface
"""
from decimal import Decimal

import pytest

from clanchain.models.audit import AuditLog, SystemConfig
from clanchain.models.billing import (Payment, ServicePackage, Subscription)
from clanchain.models.clan import Clan
from clanchain.models.user import Profile
from clanchain.services.auth_service import AuthService

BASE = "/functions/v1/superadmin-api"


def _audit_actions(db):
    return [row.action for row in db.query(AuditLog).all()]


class TestGate:
    """The role check runs before any action"""

    def test_no_header_is_401(self, client, db):
        response = client.get(f"{BASE}/analytics")
        assert response.status_code == 401
        assert response.json() == {"error": "No authorization header"}

    def test_bad_token_is_401(self, client):
        response = client.get(f"{BASE}/analytics", headers={"Authorization": "Bearer forged"})
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_plain_user_is_403(self, client, auth_headers):
        response = client.get(f"{BASE}/analytics", headers=auth_headers)
        assert response.status_code == 403
        assert response.json() == {"error": "Insufficient permissions - superadmin role required"}

    def test_plain_user_cannot_mutate(self, client, db, user, auth_headers):
        response = client.post(
            f"{BASE}/user-management", json={"action": "suspend", "user_id": user.id}, headers=auth_headers
        )
        assert response.status_code == 403
        db.expire_all()
        assert db.get(Profile, user.id).status == "active"
        assert _audit_actions(db) == []

    def test_unknown_action_is_404(self, client, superadmin_headers):
        response = client.get(f"{BASE}/self-destruct", headers=superadmin_headers)
        assert response.status_code == 404
        assert response.json() == {"error": "Endpoint not found"}


class TestUserManagement:
    def test_list_includes_roles(self, client, user, superadmin_headers):
        users = client.get(f"{BASE}/user-management", headers=superadmin_headers).json()
        by_email = {u["email"]: u for u in users}
        assert {"role": "superadmin"} in by_email["admin@example.com"]["user_roles"]
        assert by_email["member@example.com"]["subscriptions"] == []
        assert "password_hash" not in by_email["member@example.com"]

    def test_suspend_writes_one_audit_row(self, client, db, user, superadmin, superadmin_headers):
        response = client.post(
            f"{BASE}/user-management", json={"action": "suspend", "user_id": user.id}, headers=superadmin_headers
        )
        assert response.status_code == 200
        assert response.json() == {"success": True}

        db.expire_all()
        assert db.get(Profile, user.id).status == "suspended"
        rows = db.query(AuditLog).all()
        assert len(rows) == 1
        assert rows[0].action == "user_suspended"
        assert rows[0].user_id == superadmin.id
        assert rows[0].details["user_id"] == user.id

    def test_suspended_user_loses_access(self, client, user, auth_headers, superadmin_headers):
        client.post(f"{BASE}/user-management", json={"action": "suspend", "user_id": user.id}, headers=superadmin_headers)

        assert client.get("/api/auth/me", headers=auth_headers).status_code == 401

    def test_activate(self, client, db, user, superadmin_headers):
        client.post(f"{BASE}/user-management", json={"action": "suspend", "user_id": user.id}, headers=superadmin_headers)
        client.post(
            f"{BASE}/user-management", params={"action": "activate"}, json={"user_id": user.id},
            headers=superadmin_headers,
        )

        db.expire_all()
        assert db.get(Profile, user.id).status == "active"
        assert _audit_actions(db).count("user_activated") == 1

    def test_change_role(self, client, db, user, superadmin_headers):
        response = client.post(
            f"{BASE}/user-management",
            json={"action": "change_role", "user_id": user.id, "new_role": "elder"},
            headers=superadmin_headers,
        )
        assert response.status_code == 200
        assert "elder" in AuthService(db).get_roles(user.id)
        assert _audit_actions(db) == ["role_changed"]

    def test_change_to_unknown_role_is_400(self, client, db, user, superadmin_headers):
        response = client.post(
            f"{BASE}/user-management",
            json={"action": "change_role", "user_id": user.id, "new_role": "emperor"},
            headers=superadmin_headers,
        )
        assert response.status_code == 400
        assert _audit_actions(db) == []

    def test_unknown_sub_action_is_400_without_audit(self, client, db, user, superadmin_headers):
        response = client.post(
            f"{BASE}/user-management", json={"action": "banish", "user_id": user.id}, headers=superadmin_headers
        )
        assert response.status_code == 400
        assert _audit_actions(db) == []

    def test_missing_user_is_404_without_audit(self, client, db, superadmin_headers):
        response = client.post(
            f"{BASE}/user-management", json={"action": "suspend", "user_id": "ghost"}, headers=superadmin_headers
        )
        assert response.status_code == 404
        assert _audit_actions(db) == []


class TestSubscriptions:
    @pytest.fixture
    def subscription(self, db, user):
        package = ServicePackage(name="Council Plus", price_monthly=Decimal("9.99"))
        subscription = Subscription(user_id=user.id, package=package)
        db.add_all([package, subscription])
        db.flush()
        db.add_all([
            Payment(subscription_id=subscription.id, amount=Decimal("9.99"), status="success"),
            Payment(subscription_id=subscription.id, amount=Decimal("9.99"), status="success"),
            Payment(subscription_id=subscription.id, amount=Decimal("9.99"), status="failed"),
        ])
        db.commit()
        return subscription

    def test_get_describes_subscription(self, client, subscription, superadmin_headers):
        body = client.get(
            f"{BASE}/subscription-management", params={"subscription_id": subscription.id},
            headers=superadmin_headers,
        ).json()
        assert body["profiles"]["email"] == "member@example.com"
        assert body["service_packages"]["name"] == "Council Plus"
        assert len(body["payments"]) == 3

    def test_refund(self, client, db, subscription, superadmin_headers):
        response = client.post(
            f"{BASE}/subscription-management",
            json={"action": "refund", "subscription_id": subscription.id},
            headers=superadmin_headers,
        )
        assert response.json() == {"success": True, "refunded_payments": 2}
        statuses = sorted(p.status for p in db.query(Payment).all())
        assert statuses == ["failed", "refunded", "refunded"]
        assert _audit_actions(db) == ["subscription_refund"]

    def test_cancel(self, client, db, subscription, superadmin_headers):
        client.post(
            f"{BASE}/subscription-management",
            json={"action": "cancel", "subscription_id": subscription.id},
            headers=superadmin_headers,
        )
        db.expire_all()
        assert db.get(Subscription, subscription.id).status == "cancelled"
        assert _audit_actions(db) == ["subscription_cancel"]

    def test_financial_reports(self, client, subscription, superadmin_headers):
        summary = client.get(
            f"{BASE}/financial-reports", params={"type": "revenue_summary"}, headers=superadmin_headers
        ).json()
        assert summary["total_revenue"] == pytest.approx(19.98)
        assert summary["by_package"] == {"Council Plus": pytest.approx(19.98)}
        assert summary["by_provider"] == {"paystack": pytest.approx(19.98)}

        # "summary" names no single report, so every report comes back
        everything = client.get(f"{BASE}/financial-reports", headers=superadmin_headers).json()
        assert set(everything) == {"revenue_summary", "payment_breakdown", "subscription_analytics", "refund_analysis"}


class TestSystemConfig:
    def test_upsert_single_entry(self, client, db, superadmin_headers):
        response = client.post(
            f"{BASE}/system-config", json={"key": "maintenance_mode", "value": True}, headers=superadmin_headers
        )
        assert response.status_code == 200

        rows = client.get(f"{BASE}/system-config", headers=superadmin_headers).json()
        assert [(r["key"], r["value"]) for r in rows] == [("maintenance_mode", True)]
        assert _audit_actions(db) == ["config_updated"]

    def test_upsert_list_writes_one_audit_row(self, client, db, superadmin_headers):
        client.post(f"{BASE}/system-config", json={"key": "session_timeout", "value": 3600}, headers=superadmin_headers)
        client.post(
            f"{BASE}/system-config",
            json=[
                {"key": "session_timeout", "value": 86400},
                {"key": "payment_providers", "value": ["paystack", "paypal"]},
            ],
            headers=superadmin_headers,
        )

        values = {row.key: row.value for row in db.query(SystemConfig).all()}
        assert values == {"session_timeout": 86400, "payment_providers": ["paystack", "paypal"]}
        assert _audit_actions(db) == ["config_updated", "config_updated"]

    def test_missing_value_is_400(self, client, db, superadmin_headers):
        response = client.post(f"{BASE}/system-config", json={"key": "maintenance_mode"}, headers=superadmin_headers)
        assert response.status_code == 400
        assert _audit_actions(db) == []


class TestClanOversight:
    def test_verify_and_suspend(self, client, db, clan, superadmin_headers):
        client.post(f"{BASE}/clan-oversight", json={"action": "verify", "clan_id": "c1"}, headers=superadmin_headers)
        client.post(f"{BASE}/clan-oversight", json={"action": "suspend", "clan_id": "c1"}, headers=superadmin_headers)

        db.expire_all()
        stored = db.get(Clan, "c1")
        assert stored.verified is True
        assert stored.covenant_status == "suspended"
        assert _audit_actions(db) == ["clan_verify", "clan_suspend"]

    def test_get_one_with_counts(self, client, clan, superadmin_headers):
        body = client.get(f"{BASE}/clan-oversight", params={"clan_id": "c1"}, headers=superadmin_headers).json()
        assert body["name"] == "Umuada Council"
        assert body["member_count"] == 0
        assert body["dispute_count"] == 0
        assert body["tasks"] == [{"count": 0}]


class TestReadActions:
    def test_audit_logs_filter(self, client, user, superadmin_headers):
        client.post(f"{BASE}/user-management", json={"action": "suspend", "user_id": user.id}, headers=superadmin_headers)
        client.post(f"{BASE}/user-management", json={"action": "activate", "user_id": user.id}, headers=superadmin_headers)

        logs = client.get(f"{BASE}/audit-logs", params={"action": "user_activated"}, headers=superadmin_headers).json()
        assert len(logs) == 1
        assert logs[0]["profiles"]["email"] == "admin@example.com"

        capped = client.get(f"{BASE}/audit-logs", params={"limit": 1}, headers=superadmin_headers).json()
        assert len(capped) == 1

    def test_analytics(self, client, clan, user, superadmin_headers):
        body = client.get(f"{BASE}/analytics", headers=superadmin_headers).json()
        assert body["platform_stats"]["total_users"] == 2
        assert body["platform_stats"]["active_clans"] == 1

        metric = client.get(f"{BASE}/analytics", params={"metric": "engagement_metrics"}, headers=superadmin_headers)
        assert metric.json()["new_members"] == 2

    def test_system_health(self, client, superadmin_headers):
        body = client.get(f"{BASE}/system-health", headers=superadmin_headers).json()
        assert body["database_status"]["status"] == "healthy"
        assert set(body["error_rates"]) == {"errors_logged", "critical_errors", "warnings"}

    def test_read_only_action_rejects_post(self, client, db, superadmin_headers):
        response = client.post(f"{BASE}/analytics", json={}, headers=superadmin_headers)
        assert response.status_code == 405
        assert _audit_actions(db) == []
