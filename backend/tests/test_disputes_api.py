"""
Tests for the dispute routes
"""
from clanchain.models.audit import AuditLog
from clanchain.services.verdict_advisor import (VerdictAdvisor,
                                                get_verdict_advisor)


class FakeAdvisor(VerdictAdvisor):
    def __init__(self):
        self.cases = []

    async def recommend(self, case):
        self.cases.append(case)
        return {"suggested_decision": "mediate", "confidence": 0.72, "case_id": case["id"]}


def _open_dispute(client, headers, **overrides):
    body = {"title": "X", "type": "land", "involved_parties": ["m1", "m2"]}
    body.update(overrides)
    response = client.post("/api/clans/c1/disputes", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestDisputeRoutes:
    """Workflow over HTTP"""

    def test_create(self, client, clan, user, auth_headers):
        dispute = _open_dispute(client, auth_headers)

        assert dispute["status"] == "open"
        assert dispute["testimonies"] == []
        assert dispute["submitted_by"] == user.id
        assert dispute["involved_parties"] == ["m1", "m2"]

    def test_create_requires_auth(self, client, clan):
        response = client.post("/api/clans/c1/disputes", json={"title": "X"})
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_create_unknown_clan(self, client, auth_headers):
        response = client.post("/api/clans/nope/disputes", json={"title": "X"}, headers=auth_headers)
        assert response.status_code == 404
        assert "not found" in response.json()["error"]

    def test_invalid_body_is_400(self, client, clan, auth_headers):
        response = client.post("/api/clans/c1/disputes", json={"type": "land"}, headers=auth_headers)
        assert response.status_code == 400
        assert "error" in response.json()

    def test_get_missing(self, client):
        response = client.get("/api/disputes/unknown")
        assert response.status_code == 404
        assert response.json()["error"] == "Dispute unknown not found"

    def test_testimony_flow(self, client, clan, auth_headers):
        dispute = _open_dispute(client, auth_headers)

        response = client.post(
            f"/api/disputes/{dispute['id']}/testimonies",
            json={"by": "m1", "text": "I planted the palm trees"},
            headers=auth_headers,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "open"
        assert len(body["testimonies"]) == 1
        assert body["testimonies"][0]["verified"] is False

        response = client.patch(
            f"/api/disputes/{dispute['id']}/testimonies/0/verify",
            json={"verified_by": "e1"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["testimonies"][0]["verified"] is True

    def test_invalid_transition_is_409(self, client, clan, auth_headers):
        dispute = _open_dispute(client, auth_headers)

        response = client.patch(
            f"/api/disputes/{dispute['id']}/status", json={"status": "resolved"}, headers=auth_headers
        )
        assert response.status_code == 409
        assert "Cannot move dispute" in response.json()["error"]

    def test_status_then_override(self, client, elder, auth_headers):
        dispute = _open_dispute(client, auth_headers)
        client.patch(f"/api/disputes/{dispute['id']}/status", json={"status": "under_review"}, headers=auth_headers)
        client.patch(f"/api/disputes/{dispute['id']}/status", json={"status": "escalated"}, headers=auth_headers)

        response = client.post(
            f"/api/disputes/{dispute['id']}/elder-override",
            json={"decision": "resolved", "elder_id": "e1", "reasoning": "Council agreed"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "resolved"
        assert body["resolution_reasoning"] == "Council agreed"
        assert body["resolved_by"] == "e1"

    def test_override_requires_reasoning(self, client, elder, auth_headers):
        dispute = _open_dispute(client, auth_headers)
        response = client.post(
            f"/api/disputes/{dispute['id']}/elder-override",
            json={"decision": "resolved", "elder_id": "e1", "reasoning": ""},
            headers=auth_headers,
        )
        assert response.status_code == 400

    def test_override_by_non_elder_is_forbidden(self, client, elder, auth_headers, superadmin_headers):
        dispute = _open_dispute(client, auth_headers)

        named_stranger = client.post(
            f"/api/disputes/{dispute['id']}/elder-override",
            json={"decision": "resolved", "elder_id": "not-an-elder", "reasoning": "final"},
            headers=auth_headers,
        )
        assert named_stranger.status_code == 403
        assert named_stranger.json() == {"error": "Only an elder of this clan can override a dispute"}

        # a real elder id, but sent from another account
        borrowed = client.post(
            f"/api/disputes/{dispute['id']}/elder-override",
            json={"decision": "resolved", "elder_id": "e1", "reasoning": "final"},
            headers=superadmin_headers,
        )
        assert borrowed.status_code == 403

        current = client.get(f"/api/disputes/{dispute['id']}").json()
        assert current["status"] == "open"
        assert current["resolved_by"] is None

    def test_override_defaults_to_callers_elder_membership(self, client, elder, auth_headers):
        dispute = _open_dispute(client, auth_headers)
        response = client.post(
            f"/api/disputes/{dispute['id']}/elder-override",
            json={"decision": "rejected", "reasoning": "No standing"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["resolved_by"] == "e1"

    def test_override_without_elder_membership(self, client, clan, auth_headers):
        dispute = _open_dispute(client, auth_headers)
        response = client.post(
            f"/api/disputes/{dispute['id']}/elder-override",
            json={"decision": "resolved", "reasoning": "final"},
            headers=auth_headers,
        )
        assert response.status_code == 403

    def test_list_envelope(self, client, clan, auth_headers):
        for i in range(3):
            _open_dispute(client, auth_headers, title=f"Dispute {i}")

        response = client.get("/api/clans/c1/disputes", params={"page": 1, "limit": 2})
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 3
        assert body["page"] == 1
        assert body["limit"] == 2
        assert body["has_more"] is True
        assert len(body["data"]) == 2

        last = client.get("/api/clans/c1/disputes", params={"page": 2, "limit": 2}).json()
        assert last["has_more"] is False
        assert len(last["data"]) == 1

    def test_mutations_write_no_audit_rows(self, client, db, clan, auth_headers):
        _open_dispute(client, auth_headers)
        assert db.query(AuditLog).count() == 0


class TestAgentVerdict:
    """External advisor integration"""

    def test_unconfigured_advisor_is_503(self, client, clan, auth_headers):
        dispute = _open_dispute(client, auth_headers)

        response = client.post(f"/api/disputes/{dispute['id']}/agent-verdict", headers=auth_headers)

        assert response.status_code == 503
        assert response.json() == {"error": "Verdict advisor is not configured"}

    def test_verdict_is_stored(self, client, clan, auth_headers):
        from clanchain.main import app

        advisor = FakeAdvisor()
        app.dependency_overrides[get_verdict_advisor] = lambda: advisor
        dispute = _open_dispute(client, auth_headers)

        response = client.post(f"/api/disputes/{dispute['id']}/agent-verdict", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["suggested_decision"] == "mediate"
        assert advisor.cases[0]["title"] == "X"
        stored = client.get(f"/api/disputes/{dispute['id']}").json()
        assert stored["verdict"]["confidence"] == 0.72
        assert stored["status"] == "open"
