"""
Tests for the /functions/v1/clan-api CRUD dispatcher
"""
from datetime import timedelta

import pytest

from clanchain.core.exceptions import NotFoundError
from clanchain.functions.clan_api import build_clan_api_registry
from clanchain.models.community import CommunityInsight, Notification
from clanchain.utils.datetime_utils import utc_now

BASE = "/functions/v1/clan-api"


class TestRegistry:
    def test_resources(self):
        assert build_clan_api_registry().names() == [
            "clan-vault",
            "community-insights",
            "cultural-memory",
            "ethics-entries",
            "ethics-rules",
            "family-tree",
            "notifications",
            "profiles",
            "youth-tasks",
        ]

    def test_unknown_resource(self):
        with pytest.raises(NotFoundError):
            build_clan_api_registry().get("spaceships")


class TestDispatch:
    """Generic behaviour shared by every resource"""

    def test_unknown_resource_is_404(self, client):
        response = client.get(f"{BASE}/spaceships")
        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}

    def test_missing_row_is_404(self, client):
        response = client.get(f"{BASE}/youth-tasks", params={"task_id": "nope"})
        assert response.status_code == 404
        assert response.json() == {"error": "Task not found"}

    def test_mutation_requires_auth(self, client):
        response = client.post(f"{BASE}/youth-tasks", json={"title": "Fetch water"})
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_disallowed_method_is_405(self, client, auth_headers):
        for resource in ("clan-vault", "community-insights", "family-tree"):
            response = client.delete(f"{BASE}/{resource}", params={"id": "x"}, headers=auth_headers)
            assert response.status_code == 405, resource
            assert response.json() == {"error": "Method not allowed"}

    def test_update_without_id_is_400(self, client, auth_headers):
        response = client.put(f"{BASE}/youth-tasks", json={"title": "New"}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json() == {"error": "Task ID required for update"}

    def test_delete_without_id_is_400(self, client, auth_headers):
        response = client.delete(f"{BASE}/youth-tasks", headers=auth_headers)
        assert response.status_code == 400
        assert response.json() == {"error": "Task ID required for delete"}

    def test_unknown_field_is_400(self, client, auth_headers):
        response = client.post(f"{BASE}/youth-tasks", json={"title": "A", "bogus": 1}, headers=auth_headers)
        assert response.status_code == 400
        assert "bogus" in response.json()["error"]

    def test_non_json_body_is_400(self, client, auth_headers):
        response = client.post(
            f"{BASE}/youth-tasks",
            content=b"not json",
            headers={**auth_headers, "Content-Type": "application/json"},
        )
        assert response.status_code == 400

    def test_limit_is_capped(self, client, db):
        db.add_all([CommunityInsight(content=f"insight {i}") for i in range(105)])
        db.commit()

        assert len(client.get(f"{BASE}/community-insights", params={"limit": 500}).json()) == 100
        assert len(client.get(f"{BASE}/community-insights").json()) == 50
        assert len(client.get(f"{BASE}/community-insights", params={"limit": 3}).json()) == 3

    def test_bad_limit_is_400(self, client):
        response = client.get(f"{BASE}/community-insights", params={"limit": "many"})
        assert response.status_code == 400

    def test_list_newest_first_and_date_range(self, client, db):
        now = utc_now()
        db.add_all([
            CommunityInsight(content="old", topic="land", created_at=now - timedelta(days=10)),
            CommunityInsight(content="new", topic="land", created_at=now - timedelta(days=1)),
            CommunityInsight(content="other", topic="water", created_at=now),
        ])
        db.commit()

        rows = client.get(f"{BASE}/community-insights", params={"topic": "land"}).json()
        assert [r["content"] for r in rows] == ["new", "old"]

        start = (now - timedelta(days=5)).date().isoformat()
        rows = client.get(f"{BASE}/community-insights", params={"start_date": start}).json()
        assert {r["content"] for r in rows} == {"new", "other"}

    def test_bad_date_is_400(self, client):
        response = client.get(f"{BASE}/community-insights", params={"start_date": "yesterday"})
        assert response.status_code == 400


class TestYouthTasks:
    def test_crud(self, client, user, auth_headers):
        created = client.post(
            f"{BASE}/youth-tasks",
            json={"title": "Record grandmother's songs", "priority": "high"},
            headers=auth_headers,
        )
        assert created.status_code == 201
        task = created.json()
        assert task["id"]
        assert task["created_by"] == user.id
        assert task["status"] == "pending"

        updated = client.put(
            f"{BASE}/youth-tasks", params={"task_id": task["id"]}, json={"status": "completed"}, headers=auth_headers
        )
        assert updated.status_code == 200
        assert updated.json()["status"] == "completed"
        assert updated.json()["priority"] == "high"

        fetched = client.get(f"{BASE}/youth-tasks", params={"task_id": task["id"]})
        assert fetched.json()["status"] == "completed"

        deleted = client.delete(f"{BASE}/youth-tasks", params={"task_id": task["id"]}, headers=auth_headers)
        assert deleted.json() == {"success": True}
        assert client.get(f"{BASE}/youth-tasks", params={"task_id": task["id"]}).status_code == 404

    def test_filter_by_assignee(self, client, auth_headers):
        client.post(f"{BASE}/youth-tasks", json={"title": "A", "user_id": "u1"}, headers=auth_headers)
        client.post(f"{BASE}/youth-tasks", json={"title": "B", "user_id": "u2"}, headers=auth_headers)

        rows = client.get(f"{BASE}/youth-tasks", params={"user_id": "u2"}).json()
        assert [r["title"] for r in rows] == ["B"]

    def test_update_missing_row_is_404(self, client, auth_headers):
        response = client.put(f"{BASE}/youth-tasks", params={"task_id": "nope"}, json={"title": "A"}, headers=auth_headers)
        assert response.status_code == 404


class TestEthicsRules:
    def test_soft_delete_archives(self, client, auth_headers):
        rule = client.post(
            f"{BASE}/ethics-rules", json={"title": "Respect the elders"}, headers=auth_headers
        ).json()

        response = client.delete(f"{BASE}/ethics-rules", params={"rule_id": rule["id"]}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "archived"
        assert response.json()["id"] == rule["id"]

        assert client.get(f"{BASE}/ethics-rules").json() == []
        assert client.get(f"{BASE}/ethics-rules", params={"rule_id": rule["id"]}).json()["status"] == "archived"


class TestVaultResource:
    def test_create_and_update(self, client, clan, auth_headers):
        created = client.post(
            f"{BASE}/clan-vault", json={"clan_id": "c1", "vault_type": "education"}, headers=auth_headers
        )
        assert created.status_code == 201
        vault = created.json()
        assert vault["balance"] == 0
        assert vault["contributors"] == []

        updated = client.put(
            f"{BASE}/clan-vault", params={"vault_id": vault["id"]}, json={"name": "School fees"}, headers=auth_headers
        )
        assert updated.json()["name"] == "School fees"

    def test_balance_is_not_editable(self, client, clan, auth_headers):
        vault = client.post(
            f"{BASE}/clan-vault", json={"clan_id": "c1", "vault_type": "health"}, headers=auth_headers
        ).json()
        response = client.put(
            f"{BASE}/clan-vault", params={"vault_id": vault["id"]}, json={"balance": 1000}, headers=auth_headers
        )
        assert response.status_code == 400

    def test_filters_by_type(self, client, clan, auth_headers):
        client.post(f"{BASE}/clan-vault", json={"clan_id": "c1", "vault_type": "health"}, headers=auth_headers)
        client.post(f"{BASE}/clan-vault", json={"clan_id": "c1", "vault_type": "funeral"}, headers=auth_headers)

        rows = client.get(f"{BASE}/clan-vault", params={"clan_id": "c1", "type": "funeral"}).json()
        assert [r["vault_type"] for r in rows] == ["funeral"]

    def test_unknown_clan_is_409(self, client, auth_headers):
        response = client.post(
            f"{BASE}/clan-vault", json={"clan_id": "nope", "vault_type": "health"}, headers=auth_headers
        )
        assert response.status_code == 409


class TestProfilesAndFamilyTree:
    def test_profile_hides_password_hash(self, client, user):
        body = client.get(f"{BASE}/profiles", params={"user_id": user.id}).json()
        assert body["email"] == "member@example.com"
        assert "password_hash" not in body

    def test_family_tree_filter(self, client, auth_headers):
        created = client.post(
            f"{BASE}/family-tree",
            json={"email": "kin@example.com", "full_name": "Nneka", "focus_areas": ["family_tree", "fam-1"]},
            headers=auth_headers,
        )
        assert created.status_code == 201
        assert created.json()["focus_areas"] == "family_tree,fam-1"

        client.post(
            f"{BASE}/family-tree",
            json={"email": "other@example.com", "focus_areas": "family_tree,fam-2"},
            headers=auth_headers,
        )

        rows = client.get(f"{BASE}/family-tree", params={"family_id": "fam-1"}).json()
        assert [r["email"] for r in rows] == ["kin@example.com"]

        for wildcard in ("%", "_", "fam_1", "fam-%"):
            assert client.get(f"{BASE}/family-tree", params={"family_id": wildcard}).json() == []

    def test_duplicate_email_is_409(self, client, user, auth_headers):
        response = client.post(f"{BASE}/profiles", json={"email": "member@example.com"}, headers=auth_headers)
        assert response.status_code == 409


class TestCulturalMemory:
    def test_owner_and_type_filter(self, client, user, auth_headers):
        client.post(f"{BASE}/cultural-memory", json={"title": "Ogene rhythm", "memory_type": "song"}, headers=auth_headers)
        client.post(f"{BASE}/cultural-memory", json={"title": "The tortoise"}, headers=auth_headers)

        rows = client.get(f"{BASE}/cultural-memory", params={"type": "song"}).json()
        assert len(rows) == 1
        assert rows[0]["contributed_by"] == user.id


class TestEthicsEntries:
    def test_record_and_approve(self, client, clan, auth_headers):
        created = client.post(
            f"{BASE}/ethics-entries",
            json={"clan_id": "c1", "member_id": "m1", "type": "contribution", "impact_score": 5,
                  "witness": "Elder Okeke"},
            headers=auth_headers,
        )
        assert created.status_code == 201
        entry = created.json()
        assert entry["status"] == "pending"

        approved = client.put(
            f"{BASE}/ethics-entries", params={"entry_id": entry["id"]}, json={"status": "approved"},
            headers=auth_headers,
        )
        assert approved.json()["status"] == "approved"
        assert approved.json()["impact_score"] == 5

    def test_negative_impact_for_violations(self, client, clan, auth_headers):
        client.post(
            f"{BASE}/ethics-entries",
            json={"clan_id": "c1", "member_id": "m1", "type": "violation", "impact_score": -3},
            headers=auth_headers,
        )
        client.post(
            f"{BASE}/ethics-entries",
            json={"clan_id": "c1", "member_id": "m2", "type": "recognition", "impact_score": 2},
            headers=auth_headers,
        )

        rows = client.get(f"{BASE}/ethics-entries", params={"member_id": "m1"}).json()
        assert [(r["type"], r["impact_score"]) for r in rows] == [("violation", -3)]
        assert len(client.get(f"{BASE}/ethics-entries", params={"type": "recognition"}).json()) == 1

    def test_unknown_type_is_400(self, client, clan, auth_headers):
        response = client.post(
            f"{BASE}/ethics-entries", json={"clan_id": "c1", "member_id": "m1", "type": "gossip"},
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_entries_are_not_deleted(self, client, clan, auth_headers):
        response = client.delete(f"{BASE}/ethics-entries", params={"entry_id": "x"}, headers=auth_headers)
        assert response.status_code == 405


class TestNotifications:
    def test_list_envelope_and_unread_filter(self, client, db, user, auth_headers):
        first = client.post(
            f"{BASE}/notifications",
            json={"user_id": user.id, "title": "Vault topped up", "type": "vault_update"},
            headers=auth_headers,
        ).json()
        client.post(
            f"{BASE}/notifications", json={"user_id": user.id, "title": "Rite planned"}, headers=auth_headers
        )
        client.post(f"{BASE}/notifications", json={"user_id": "someone-else", "title": "Hi"}, headers=auth_headers)

        body = client.get(f"{BASE}/notifications", params={"user_id": user.id}).json()
        assert body["total_count"] == 2
        assert body["unread_count"] == 2

        marked = client.put(
            f"{BASE}/notifications", params={"id": first["id"]}, json={"read": True}, headers=auth_headers
        )
        assert marked.status_code == 200
        assert marked.json()["read"] is True

        unread = client.get(f"{BASE}/notifications", params={"user_id": user.id, "unread_only": "true"}).json()
        assert [n["title"] for n in unread["notifications"]] == ["Rite planned"]
        assert unread["unread_count"] == 1

        by_type = client.get(f"{BASE}/notifications", params={"type": "vault_update"}).json()
        assert by_type["total_count"] == 1

    def test_type_and_title_derived_from_message(self, client, auth_headers):
        created = client.post(
            f"{BASE}/notifications",
            json={"message": "The council of elders meets on the next market day at dawn"},
            headers=auth_headers,
        ).json()
        assert created["type"] == "elder_alert"
        assert created["title"] == "The council of elders meets..."
        assert created["read"] is False

        plain = client.post(f"{BASE}/notifications", json={"message": "Welcome home"}, headers=auth_headers).json()
        assert plain["type"] == "general"
        assert plain["title"] == "Welcome home"

    def test_elder_alert_and_high_priority_become_insights(self, client, db, auth_headers):
        client.post(
            f"{BASE}/notifications",
            json={"title": "Council", "message": "Elders gather tonight", "type": "elder_alert"},
            headers=auth_headers,
        )
        client.post(
            f"{BASE}/notifications",
            json={"title": "Flood", "message": "Road washed out", "type": "general", "priority": "high"},
            headers=auth_headers,
        )
        client.post(f"{BASE}/notifications", json={"title": "Quiet day"}, headers=auth_headers)

        insights = {i.content: i for i in db.query(CommunityInsight).all()}
        assert set(insights) == {"Elders gather tonight", "Road washed out"}
        assert insights["Elders gather tonight"].topic == "elder_alert"
        assert insights["Elders gather tonight"].sentiment_score == 0.0
        assert insights["Road washed out"].sentiment_score == -0.5
        assert db.query(Notification).count() == 3

    def test_empty_notification_is_400(self, client, auth_headers):
        response = client.post(f"{BASE}/notifications", json={"type": "general"}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json() == {"error": "Notification requires a title or message"}

    def test_mark_read_requires_id(self, client, auth_headers):
        response = client.put(f"{BASE}/notifications", json={"read": True}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json() == {"error": "Notification ID required for update"}
