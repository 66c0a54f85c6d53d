"""
Tests for clans, members and rites
"""
from datetime import datetime, timedelta, timezone

import pytest

from clanchain.core.exceptions import NotFoundError, ValidationError
from clanchain.models.clan import Member
from clanchain.services.clan_service import ClanService
from clanchain.services.rite_service import RiteService
from clanchain.utils.datetime_utils import utc_now


class TestClanService:
    def test_founder_becomes_first_elder(self, db, user):
        clan = ClanService(db).create_clan("Umunna Okafor", region="Enugu", founder_id=user.id, founder_name="Ada")

        assert len(clan.members) == 1
        founder = clan.members[0]
        assert founder.role == "elder"
        assert clan.elders == [founder.id]
        assert clan.covenant_status == "active"

    def test_elders_follow_role_changes(self, db, clan):
        service = ClanService(db)
        member = service.add_member("c1", name="Obi", role="youth")
        assert service.get_clan("c1").elders == []

        service.update_member_role("c1", member.id, "elder")
        assert service.get_clan("c1").elders == [member.id]

        service.update_member_role("c1", member.id, "diaspora")
        assert service.get_clan("c1").elders == []

    def test_member_belongs_to_one_clan(self, db, clan):
        member = ClanService(db).add_member("c1", name="Obi")
        assert db.get(Member, member.id).clan_id == "c1"
        with pytest.raises(NotFoundError):
            ClanService(db).add_member("missing", name="Ghost")

    def test_invalid_covenant_status(self, db, clan):
        with pytest.raises(ValidationError):
            ClanService(db).update_clan("c1", {"covenant_status": "asleep"})

    def test_elders_cannot_be_set_directly(self, db, clan):
        with pytest.raises(ValidationError):
            ClanService(db).update_clan("c1", {"elders": ["someone"]})
        assert ClanService(db).get_clan("c1").elders == []

    def test_search_treats_wildcards_literally(self, db, clan):
        service = ClanService(db)
        service.create_clan("100% Umunna")

        assert [c.name for c in service.search_clans("%")] == ["100% Umunna"]
        assert service.search_clans("_") == []


class TestClanRoutes:
    def test_create_get_update(self, client, user, auth_headers):
        created = client.post(
            "/api/clans", json={"name": "Umunna Eze", "region": "Imo", "founder_name": "Eze"}, headers=auth_headers
        )
        assert created.status_code == 201
        clan = created.json()
        assert clan["founder_id"] == user.id
        assert len(clan["members"]) == 1

        updated = client.patch(
            f"/api/clans/{clan['id']}", json={"covenant_status": "dormant"}, headers=auth_headers
        )
        assert updated.json()["covenant_status"] == "dormant"
        assert client.get(f"/api/clans/{clan['id']}").json()["name"] == "Umunna Eze"

    def test_search(self, client, clan):
        assert [c["id"] for c in client.get("/api/clans/search", params={"q": "umuada"}).json()] == ["c1"]
        assert client.get("/api/clans/search", params={"q": "umuada", "region": "Lagos"}).json() == []

    def test_members(self, client, clan, auth_headers):
        created = client.post(
            "/api/clans/c1/members", json={"name": "Nkem", "role": "women", "lineage": ["Okafor"]},
            headers=auth_headers,
        )
        assert created.status_code == 201
        member_id = created.json()["id"]

        promoted = client.patch(f"/api/clans/c1/members/{member_id}", json={"role": "elder"}, headers=auth_headers)
        assert promoted.json()["role"] == "elder"
        assert client.get("/api/clans/c1").json()["elders"] == [member_id]
        assert [m["name"] for m in client.get("/api/clans/c1/members").json()] == ["Nkem"]

    def test_patch_rejects_elders(self, client, clan, auth_headers):
        response = client.patch("/api/clans/c1", json={"elders": ["someone"]}, headers=auth_headers)
        assert response.status_code == 400
        assert client.get("/api/clans/c1").json()["elders"] == []

    def test_unknown_clan(self, client):
        assert client.get("/api/clans/nope").status_code == 404


class TestRites:
    def test_completing_rite_records_it_on_member(self, db, clan):
        member = ClanService(db).add_member("c1", name="Chioma")
        service = RiteService(db)
        rite = service.create_rite("c1", "naming", utc_now(), member_id=member.id, officiant="Elder Okeke")

        service.update_rite(rite.id, {"status": "completed"})

        db.expire_all()
        assert db.get(Member, member.id).rites_completed == [rite.id]

    def test_schedule_must_be_future(self, db, clan):
        service = RiteService(db)
        with pytest.raises(ValidationError):
            service.schedule_rite("c1", "marriage", datetime(2000, 1, 1))

        rite = service.schedule_rite("c1", "marriage", utc_now() + timedelta(days=30), location="Village square")
        assert rite.status == "planned"

    def test_update_rejects_unknown_fields(self, db, clan):
        service = RiteService(db)
        rite = service.create_rite("c1", "blessing", utc_now())
        with pytest.raises(ValidationError):
            service.update_rite(rite.id, {"clan_id": "elsewhere"})

    def test_routes(self, client, clan, auth_headers):
        future = (datetime.now(timezone.utc) + timedelta(days=7)).isoformat()
        scheduled = client.post(
            "/api/clans/c1/rites/schedule", json={"type": "initiation", "date": future}, headers=auth_headers
        )
        assert scheduled.status_code == 201

        client.post(
            "/api/clans/c1/rites", json={"type": "burial", "date": "2024-05-01T10:00:00Z", "status": "completed"},
            headers=auth_headers,
        )

        page = client.get("/api/clans/c1/rites").json()
        assert page["total"] == 2
        assert [r["type"] for r in page["data"]] == ["initiation", "burial"]

        burials = client.get("/api/clans/c1/rites", params={"type": "burial"}).json()
        assert burials["total"] == 1

        rite_id = scheduled.json()["id"]
        updated = client.patch(f"/api/rites/{rite_id}", json={"notes": "Bring palm wine"}, headers=auth_headers)
        assert updated.json()["notes"] == "Bring palm wine"
        assert client.get(f"/api/rites/{rite_id}").json()["status"] == "planned"

    def test_past_schedule_is_400(self, client, clan, auth_headers):
        response = client.post(
            "/api/clans/c1/rites/schedule", json={"type": "naming", "date": "2001-01-01T00:00:00Z"},
            headers=auth_headers,
        )
        assert response.status_code == 400
