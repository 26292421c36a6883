"""Tests for the HTTP API routes."""

from unittest.mock import patch

from fastapi.testclient import TestClient

from src.core.exceptions import DuplicateLeadError, LeadConflictError
from src.models import LeadRecord, LeadStatus


class TestLeadRoutes:
    """Tests for /api/leads."""

    def test_create_lead(self, client: TestClient, mock_db, lead_factory):
        mock_db.get_lead_by_phone.return_value = None
        mock_db.create_lead.return_value = LeadRecord(**lead_factory())

        response = client.post("/api/leads", json={"phone": "+92-300-1234567", "source": "new"})

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["data"]["status"] == "pending"

    def test_create_lead_requires_source(self, client: TestClient):
        response = client.post("/api/leads", json={"phone": "+923001234567"})

        assert response.status_code == 422

    def test_create_duplicate_lead(self, client: TestClient, mock_db, lead_factory):
        mock_db.get_lead_by_phone.return_value = LeadRecord(**lead_factory())

        response = client.post("/api/leads", json={"phone": "+923001234567", "source": "old"})

        assert response.status_code == 400
        assert "already exists" in response.json()["error"]

    def test_create_lead_lost_race_is_duplicate(self, client: TestClient, mock_db):
        mock_db.get_lead_by_phone.return_value = None
        mock_db.create_lead.side_effect = DuplicateLeadError("+923001234567")

        response = client.post("/api/leads", json={"phone": "+923001234567", "source": "new"})

        assert response.status_code == 400
        assert "already exists" in response.json()["error"]

    def test_list_leads_with_filter(self, client: TestClient, mock_db, lead_factory):
        mock_db.list_leads.return_value = ([LeadRecord(**lead_factory(status="calling"))], 1)

        response = client.get("/api/leads", params={"status": "calling", "limit": 10})

        assert response.status_code == 200
        data = response.json()
        assert data["pagination"] == {"page": 1, "limit": 10, "total": 1, "pages": 1}
        assert data["data"][0]["status"] == "calling"
        mock_db.list_leads.assert_awaited_once_with({"status": "calling"}, page=1, limit=10)

    def test_list_leads_rejects_unknown_status(self, client: TestClient):
        response = client.get("/api/leads", params={"status": "voicemail"})

        assert response.status_code == 422

    def test_get_lead_not_found(self, client: TestClient, mock_db):
        mock_db.get_lead.return_value = None

        response = client.get("/api/leads/missing")

        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_update_illegal_transition(self, client: TestClient, mock_db, lead_factory):
        mock_db.get_lead.return_value = LeadRecord(**lead_factory(status="pending"))

        response = client.put("/api/leads/lead_test_1", json={"status": "qualified"})

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["from_status"] == "pending"
        assert data["to_status"] == "qualified"
        assert data["allowed"] == ["calling", "dropped"]
        assert 'Invalid transition from "pending" to "qualified"' in data["error"]
        mock_db.update_lead_status.assert_not_awaited()

    def test_update_ignores_id_and_timestamps(self, client: TestClient, mock_db, lead_factory):
        mock_db.get_lead.return_value = LeadRecord(**lead_factory())
        mock_db.update_lead.return_value = LeadRecord(**lead_factory(name="Ahmed Raza"))

        response = client.put("/api/leads/lead_test_1", json={
            "_id": "other",
            "createdAt": "2024-01-01T00:00:00Z",
            "name": "Ahmed Raza",
        })

        assert response.status_code == 200
        mock_db.update_lead.assert_awaited_once_with("lead_test_1", {"name": "Ahmed Raza"})

    def test_update_rejects_blank_phone(self, client: TestClient, mock_db):
        response = client.put("/api/leads/lead_test_1", json={"phone": "  "})

        assert response.status_code == 422
        mock_db.update_lead.assert_not_awaited()

    def test_delete_lead(self, client: TestClient, mock_db):
        mock_db.delete_lead.return_value = True

        response = client.delete("/api/leads/lead_test_1")

        assert response.status_code == 200
        assert response.json()["message"] == "Lead deleted successfully"

    def test_get_transitions(self, client: TestClient, mock_db, lead_factory):
        mock_db.get_lead.return_value = LeadRecord(**lead_factory(status="calling"))

        response = client.get("/api/leads/lead_test_1/transitions")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "calling"
        assert data["valid_transitions"] == ["answered", "dropped", "pending"]
        assert data["is_terminal"] is False


class TestCallRoutes:
    """Tests for /api/calls/*."""

    def test_start_call(self, client: TestClient, mock_db, lead_factory):
        mock_db.get_lead.return_value = LeadRecord(**lead_factory(status="pending"))
        mock_db.update_lead_status.return_value = LeadRecord(
            **lead_factory(status="calling", call_attempts=1)
        )

        response = client.post("/api/calls/start", json={"leadId": "lead_test_1"})

        assert response.status_code == 200
        data = response.json()
        assert data["callSid"] == "CA_test_12345"
        assert data["data"]["status"] == "calling"

    def test_start_call_without_twilio(self, client: TestClient, mock_twilio):
        mock_twilio.is_configured.return_value = False

        response = client.post("/api/calls/start", json={"leadId": "lead_test_1"})

        assert response.status_code == 500
        assert "Twilio credentials not configured" in response.json()["error"]

    def test_start_call_on_dropped_lead(self, client: TestClient, mock_db, lead_factory):
        mock_db.get_lead.return_value = LeadRecord(**lead_factory(status="dropped"))

        response = client.post("/api/calls/start", json={"leadId": "lead_test_1"})

        assert response.status_code == 400
        assert response.json()["allowed"] == []

    def test_manual_start(self, client: TestClient, mock_db, lead_factory):
        mock_db.get_lead.return_value = LeadRecord(**lead_factory(status="pending"))
        mock_db.update_lead_status.return_value = LeadRecord(
            **lead_factory(status="calling", call_attempts=1)
        )

        response = client.post("/api/calls/manual-start", json={"leadId": "lead_test_1"})

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Ready for manual dial"
        assert data["manualDialing"]["phone_number"] == "+923001234567"

    def test_answered(self, client: TestClient, mock_db, lead_factory):
        mock_db.get_lead.return_value = LeadRecord(**lead_factory(status="calling"))
        mock_db.update_lead_status.return_value = LeadRecord(**lead_factory(status="answered"))

        response = client.post("/api/calls/answered", json={"leadId": "lead_test_1"})

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "answered"

    def test_no_answer_drops_after_attempts(self, client: TestClient, mock_db, lead_factory):
        mock_db.get_lead.return_value = LeadRecord(**lead_factory(status="calling", call_attempts=2))
        mock_db.update_lead_status.return_value = LeadRecord(
            **lead_factory(status="dropped", call_attempts=2)
        )

        response = client.post("/api/calls/no-answer", json={"leadId": "lead_test_1"})

        assert response.status_code == 200
        data = response.json()
        assert data["data"]["status"] == "dropped"
        assert data["message"] == "Lead dropped after 2 failed attempts"
        assert mock_db.update_lead_status.await_args.kwargs["new_status"] == LeadStatus.DROPPED

    def test_concurrent_update_is_conflict(self, client: TestClient):
        with patch("src.api.calls.lead_service.mark_answered") as mock_mark:
            mock_mark.side_effect = LeadConflictError(
                "lead_test_1", LeadStatus.CALLING, LeadStatus.PENDING
            )

            response = client.post("/api/calls/answered", json={"leadId": "lead_test_1"})

        assert response.status_code == 409
        assert "modified concurrently" in response.json()["error"]

    def test_missing_lead_id(self, client: TestClient):
        response = client.post("/api/calls/answered", json={})

        assert response.status_code == 422


class TestVoiceRoutes:
    """Tests for /api/voice and the Twilio status callback."""

    def test_voice_twiml(self, client: TestClient):
        response = client.post("/api/voice")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/xml")
        assert "<Say" in response.text
        assert "<Hangup/>" in response.text

    def test_status_callback(self, client: TestClient, mock_db, lead_factory, sample_status_callback):
        mock_db.get_lead_by_phone.return_value = LeadRecord(
            **lead_factory(status="calling", call_attempts=1)
        )
        mock_db.update_lead_status.return_value = LeadRecord(**lead_factory(status="pending"))

        response = client.post("/api/voice/status", data=sample_status_callback)

        assert response.status_code == 200
        assert response.json() == {"ok": True, "leadStatus": "pending", "callStatus": "no-answer"}

    def test_answered_call_callback(self, client: TestClient, mock_db, lead_factory):
        mock_db.get_lead_by_phone.return_value = LeadRecord(
            **lead_factory(status="calling", call_attempts=1)
        )
        mock_db.update_lead_status.return_value = LeadRecord(**lead_factory(status="answered"))

        response = client.post("/api/voice/status", data={
            "CallSid": "CA_test_12345",
            "CallStatus": "in-progress",
            "To": "+923001234567",
        })

        assert response.json() == {"ok": True, "leadStatus": "answered", "callStatus": "in-progress"}
        mock_db.update_latest_call_attempt.assert_awaited_once_with("lead_test_1", "answered")

    def test_status_callback_always_acknowledged(
        self,
        client: TestClient,
        mock_db,
        sample_status_callback
    ):
        mock_db.get_lead_by_phone.side_effect = Exception("Database error")

        response = client.post("/api/voice/status", data=sample_status_callback)

        assert response.status_code == 200
        assert response.json()["ok"] is True
        assert response.json()["error"] == "Internal error"


class TestSeedRoutes:

    def test_seed_when_populated(self, client: TestClient, mock_db):
        mock_db.count_leads.return_value = 5

        response = client.post("/api/seed")

        assert response.status_code == 200
        assert response.json()["success"] is False
        assert response.json()["existingCount"] == 5

    def test_clear(self, client: TestClient, mock_db):
        mock_db.delete_all_leads.return_value = 5

        response = client.delete("/api/seed")

        assert response.json() == {
            "success": True,
            "message": "All leads deleted successfully",
            "deletedCount": 5,
        }


class TestRootEndpoints:

    def test_root_endpoint(self, client: TestClient):
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "Lead Dialer"
        assert "calls" in data["endpoints"]

    def test_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
