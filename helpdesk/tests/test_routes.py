"""
API route tests

Services are swapped through `app.dependency_overrides`; nothing talks to
Jira or Supabase.
"""
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

from helpdesk import dependencies
from helpdesk.config import Settings, get_settings
from helpdesk.exceptions import TrackerError, TransitionUnavailable
from helpdesk.main import app
from helpdesk.models.schemas import Category, ChatMessage, ChatRole
from helpdesk.services.acknowledgement import VerificationResult, now_ms
from helpdesk.services.category_sync import CategorySyncService
from helpdesk.services.reconciliation import BulkReconciliationService
from helpdesk.services.transition_engine import MessageTransitionEngine
from helpdesk.tests.conftest import MASTER_EMAIL
from helpdesk.tests.fakes import InMemoryCategoryRepository, make_jira, make_ticket


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def wired(settings):
    """Real services over in-memory/mock collaborators"""
    repo = InMemoryCategoryRepository()
    jira = make_jira([make_ticket("HELP-1", status="In Progress"), make_ticket("HELP-42", status="Pending")])
    sync = CategorySyncService(jira, repo)

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[dependencies.get_jira_client] = lambda: jira
    app.dependency_overrides[dependencies.get_category_repository] = lambda: repo
    app.dependency_overrides[dependencies.get_category_sync] = lambda: sync
    app.dependency_overrides[dependencies.get_reconciliation_service] = (
        lambda: BulkReconciliationService(sync, settings, sleep=AsyncMock())
    )
    app.dependency_overrides[dependencies.get_transition_engine] = (
        lambda: MessageTransitionEngine(sync, settings)
    )
    return repo, jira


class TestHealth:

    def test_basic_health(self, client):
        """Test basic health check endpoint"""
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestSyncCategory:

    def test_missing_fields_is_400(self, client, wired):
        """Test missing fields return 400"""
        response = client.post("/api/jira/sync-category", json={"ticketKey": "HELP-1"})
        assert response.status_code == 400

    def test_invalid_category_is_400(self, client, wired):
        """Test an unknown category returns 400"""
        response = client.post("/api/jira/sync-category", json={"ticketKey": "HELP-1", "category": "Archived"})
        assert response.status_code == 400

    def test_success(self, client, wired):
        """Test a successful category sync"""
        _, jira = wired
        response = client.post("/api/jira/sync-category", json={"ticketKey": "HELP-1", "category": "Resolved"})

        assert response.status_code == 200
        assert response.json()["success"] is True
        jira.transition.assert_awaited_once_with("HELP-1", "Done", resolution="Done")

    def test_tracker_failure_is_500_with_message(self, client, wired):
        """Test a failed Jira sync returns 500"""
        # HELP-9 is unknown to Jira
        response = client.post("/api/jira/sync-category", json={"ticketKey": "HELP-9", "category": "Resolved"})

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Failed to sync ticket"}

    def test_bulk_sync_reports_counts(self, client, wired):
        """Test bulk sync response counts"""
        repo, _ = wired
        repo.upsert_category("HELP-1", Category.RESOLVED)

        response = client.post("/api/sync-jira-status")

        assert response.status_code == 200
        body = response.json()
        assert (body["synced"], body["failed"], body["total"]) == (1, 0, 1)


class TestBulkResolve:

    def test_non_master_gets_403_and_nothing_is_written(self, client, wired):
        """Test non-master bulk resolve is forbidden"""
        repo, jira = wired

        response = client.post("/api/tickets/bulk-resolve", json={"userEmail": "random@attacker.com"})

        assert response.status_code == 403
        assert repo.writes == 0
        jira.transition.assert_not_called()

    def test_master_resolves(self, client, wired):
        """Test master bulk resolve"""
        repo, _ = wired

        response = client.post("/api/tickets/bulk-resolve", json={"userEmail": MASTER_EMAIL})

        assert response.status_code == 200
        assert response.json() == {"success": True, "resolved": 2, "failed": 0, "errors": []}
        assert repo.rows["HELP-42"].category == Category.RESOLVED

    def test_pending_variant(self, client, wired):
        """Test the pending variant only resolves Pending Reply tickets"""
        response = client.post("/api/jira/bulk-resolve", json={"userEmail": MASTER_EMAIL})
        assert response.json()["resolved"] == 1

    @pytest.mark.parametrize("path", ["/api/tickets/bulk-resolve", "/api/jira/bulk-resolve"])
    def test_failed_ticket_search_is_500(self, client, wired, path):
        """Test a bulk run that cannot fetch tickets fails with 500"""
        repo, jira = wired
        jira.get_all_tickets.side_effect = TrackerError("Jira down", status_code=503)

        response = client.post(path, json={"userEmail": MASTER_EMAIL})

        assert response.status_code == 500
        assert "Could not fetch tickets" in response.json()["detail"]
        assert repo.writes == 0


class TestCategories:

    def test_get_derived_category(self, client, wired):
        """Test a derived category is returned"""
        response = client.get("/api/ticket-categories/HELP-42")
        assert response.json() == {"ticketKey": "HELP-42", "category": "Pending Reply", "source": "derived"}

    def test_unknown_ticket_is_404(self, client, wired):
        """Test unknown tickets return 404"""
        assert client.get("/api/ticket-categories/HELP-404").status_code == 404

    def test_upsert_with_jira_sync(self, client, wired):
        """Test upsert with Jira sync"""
        repo, jira = wired
        response = client.post(
            "/api/ticket-categories",
            json={"ticketKey": "HELP-1", "category": "Resolved", "syncToJira": True},
        )

        assert response.status_code == 200
        assert response.json()["jiraSynced"] is True
        assert repo.rows["HELP-1"].category == Category.RESOLVED

    def test_upsert_rejects_malformed_key(self, client, wired):
        """Test malformed ticket keys are rejected"""
        repo, _ = wired
        response = client.post("/api/ticket-categories", json={"ticketKey": "help 1", "category": "Resolved"})

        assert response.status_code == 400
        assert repo.writes == 0

    def test_status_change_unavailable_lists_transitions(self, client, wired):
        """Test unavailable status change lists transitions"""
        _, jira = wired
        jira.transition.side_effect = TransitionUnavailable("HELP-1", "Archived", ["Done", "Pending"])

        response = client.put("/api/jira/ticket/HELP-1/status", json={"status": "Archived"})

        assert response.status_code == 400
        assert response.json()["availableTransitions"] == ["Done", "Pending"]


class TestChatMessages:

    def test_post_saves_then_mirrors_and_transitions(self, client, wired):
        """Test posting a message mirrors it and transitions the ticket"""
        repo, jira = wired
        chat_repo = MagicMock()
        chat_repo.insert_message_async = AsyncMock(return_value=ChatMessage(
            id=1, ticket_key="HELP-42", user_email="user@example.com", message="Any update?",
            role=ChatRole.USER, created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        ))
        app.dependency_overrides[dependencies.get_chat_repository] = lambda: chat_repo

        response = client.post("/api/chat-messages", json={
            "ticketKey": "HELP-42", "userEmail": "user@example.com",
            "message": "Any update?", "role": "user",
        })

        assert response.status_code == 201
        jira.add_comment.assert_awaited_once_with("HELP-42", "user@example.com: Any update?")
        assert repo.rows["HELP-42"].category == Category.IN_PROGRESS

    def test_mirror_failure_does_not_fail_request(self, client, wired):
        """Test a failed mirror does not fail the post"""
        repo, jira = wired
        jira.add_comment.side_effect = TrackerError("Jira down", status_code=503)
        chat_repo = MagicMock()
        chat_repo.insert_message_async = AsyncMock(return_value=ChatMessage(
            id=2, ticket_key="HELP-1", user_email="user@example.com", message="hi", role=ChatRole.USER,
        ))
        app.dependency_overrides[dependencies.get_chat_repository] = lambda: chat_repo

        response = client.post("/api/chat-messages", json={
            "ticketKey": "HELP-1", "userEmail": "user@example.com", "message": "hi", "role": "user",
        })

        assert response.status_code == 201
        assert repo.rows["HELP-1"].category == Category.PENDING_REPLY


class TestAcknowledgement:

    def test_too_soon_returns_time_remaining(self, client):
        """Test early verification reports time remaining"""
        verifier = MagicMock()
        verifier.verify = AsyncMock()
        app.dependency_overrides[dependencies.get_acknowledgement_verifier] = lambda: verifier

        response = client.post("/api/verify-acknowledgement", json={
            "ticketId": "HELP-1", "customerEmail": "user@example.com", "submissionTimestamp": now_ms(),
        })

        assert response.status_code == 400
        assert 0 < response.json()["timeRemaining"] <= 60
        verifier.verify.assert_not_called()

    def test_expired_link(self, client):
        """Test expired verification links"""
        app.dependency_overrides[dependencies.get_acknowledgement_verifier] = lambda: MagicMock()

        response = client.post("/api/verify-acknowledgement", json={
            "ticketId": "HELP-1", "customerEmail": "user@example.com",
            "submissionTimestamp": now_ms() - 11 * 60 * 1000,
        })

        assert response.status_code == 400
        assert response.json()["expired"] is True

    def test_verified_redirect(self, client):
        """Test verified acknowledgements redirect to the ticket"""
        verifier = MagicMock()
        verifier.verify = AsyncMock(return_value=VerificationResult(True, "ok", make_ticket("HELP-5")))
        app.dependency_overrides[dependencies.get_acknowledgement_verifier] = lambda: verifier

        response = client.post("/api/verify-acknowledgement", json={
            "ticketId": "HELP-5", "customerEmail": "user@example.com",
            "submissionTimestamp": now_ms() - 2 * 60 * 1000,
        })

        assert response.status_code == 200
        assert response.json()["verified"] is True
        assert response.json()["redirectUrl"] == "/tickets/HELP-5"

    def test_status_unknown_email(self, client):
        """Test status for an unknown email"""
        service = MagicMock()
        service.status = AsyncMock(return_value=None)
        app.dependency_overrides[dependencies.get_acknowledgement_service] = lambda: service

        response = client.get("/api/acknowledgement/status", params={"email": "nobody@example.com"})

        assert response.json() == {"acknowledged": False}

    def test_webhook_requires_sent_status(self, client):
        """Test the webhook only accepts sent acknowledgements"""
        service = MagicMock()
        service.record = AsyncMock()
        app.dependency_overrides[dependencies.get_acknowledgement_service] = lambda: service

        response = client.post("/api/acknowledgement/webhook", json={
            "customerEmail": "user@example.com", "status": "bounced",
        })

        assert response.status_code == 400
        service.record.assert_not_called()


class TestErrors:

    def test_missing_jira_config_is_500(self, client):
        """Test missing Jira config returns 500"""
        app.dependency_overrides[get_settings] = lambda: Settings(_env_file=None)

        response = client.get("/api/jira/latest-ticket", params={"userEmail": "user@example.com"})

        assert response.status_code == 500
        assert "JIRA_BASE_URL" in response.json()["detail"]

    def test_pending_ticket_not_found(self, client):
        """Test unknown pending ticket returns 404"""
        repository = MagicMock()
        repository.get_pending_ticket_async = AsyncMock(return_value=None)
        app.dependency_overrides[dependencies.get_pending_ticket_repository] = lambda: repository

        response = client.get("/api/pending-tickets", params={"id": "42"})

        assert response.status_code == 404

    def test_pending_ticket_bad_email_is_400(self, client):
        """Test pending tickets need a valid email"""
        repository = MagicMock()
        repository.insert_pending_ticket_async = AsyncMock()
        app.dependency_overrides[dependencies.get_pending_ticket_repository] = lambda: repository

        response = client.post("/api/pending-tickets", json={"userEmail": "not-an-email"})

        assert response.status_code == 400
        repository.insert_pending_ticket_async.assert_not_called()
