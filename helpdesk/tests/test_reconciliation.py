"""
Tests for bulk reconciliation jobs
"""
import pytest
from unittest.mock import AsyncMock

from helpdesk.config import Settings
from helpdesk.exceptions import (
    BulkOperationFailed,
    ConfigurationError,
    TrackerError,
    TransitionUnavailable,
    Unauthorized,
)
from helpdesk.models.schemas import Category
from helpdesk.services.category_sync import CategorySyncService
from helpdesk.services.reconciliation import BulkReconciliationService
from helpdesk.tests.conftest import MASTER_EMAIL
from helpdesk.tests.fakes import InMemoryCategoryRepository, make_jira, make_ticket


def _service(settings, tickets, overrides=None, sleep=None):
    repo = InMemoryCategoryRepository(overrides)
    jira = make_jira(tickets)
    service = BulkReconciliationService(
        CategorySyncService(jira, repo), settings, sleep=sleep or AsyncMock()
    )
    return service, repo, jira


class TestAuthorization:

    @pytest.mark.asyncio
    async def test_non_master_is_rejected_before_any_write(self, settings):
        """Test non-master callers are rejected before any write"""
        service, repo, jira = _service(settings, [make_ticket("HELP-1")])

        with pytest.raises(Unauthorized):
            await service.bulk_resolve("random@attacker.com")

        jira.get_all_tickets.assert_not_called()
        jira.transition.assert_not_called()
        assert repo.writes == 0

    @pytest.mark.asyncio
    async def test_missing_master_config(self, settings):
        """Test bulk jobs need a configured master account"""
        settings = settings.model_copy(update={"master_email": ""})
        service, _, _ = _service(settings, [])

        with pytest.raises(ConfigurationError):
            await service.bulk_resolve("anyone@example.com")

    @pytest.mark.asyncio
    async def test_master_match_is_case_insensitive(self, settings):
        """Test master matching ignores case"""
        service, _, _ = _service(settings, [])
        result = await service.bulk_resolve(MASTER_EMAIL.upper())
        assert result.resolved == 0


class TestBulkResolve:

    @pytest.mark.asyncio
    async def test_one_failure_is_isolated(self, settings):
        """Test one failing ticket does not stop the run"""
        tickets = [make_ticket(f"HELP-{i}") for i in range(1, 6)]
        service, repo, jira = _service(settings, tickets)

        async def transition(key, target, resolution=None):
            if key == "HELP-3":
                raise TransitionUnavailable(key, target, ["Reopen"])
            return True

        jira.transition.side_effect = transition

        result = await service.bulk_resolve(MASTER_EMAIL)

        assert result.resolved == 4
        assert result.failed == 1
        assert len(result.errors) == 1
        assert "HELP-3" in result.errors[0]
        assert "HELP-3" not in repo.rows
        assert all(repo.rows[f"HELP-{i}"].category == Category.RESOLVED for i in (1, 2, 4, 5))

    @pytest.mark.asyncio
    async def test_already_done_counts_as_resolved_without_jira_write(self, settings):
        """Test Done tickets count as resolved without a Jira write"""
        service, repo, jira = _service(settings, [make_ticket("HELP-1", status="Done")])

        result = await service.bulk_resolve(MASTER_EMAIL)

        assert result.resolved == 1
        jira.transition.assert_not_called()
        assert repo.rows["HELP-1"].category == Category.RESOLVED

    @pytest.mark.asyncio
    async def test_pause_between_items_only(self):
        """Test the delay runs between items only"""
        settings = Settings(_env_file=None, master_email=MASTER_EMAIL, bulk_operation_delay=0.5)
        sleep = AsyncMock()
        tickets = [make_ticket(f"HELP-{i}") for i in range(1, 4)]
        service, _, _ = _service(settings, tickets, sleep=sleep)

        await service.bulk_resolve(MASTER_EMAIL)

        assert sleep.await_count == 2
        sleep.assert_awaited_with(0.5)

    @pytest.mark.asyncio
    async def test_search_failure_aborts_before_any_write(self, settings):
        """Test a failed ticket search stops the run as BulkOperationFailed"""
        service, repo, jira = _service(settings, [])
        jira.get_all_tickets.side_effect = TrackerError("Jira down", status_code=503)

        with pytest.raises(BulkOperationFailed) as exc:
            await service.bulk_resolve(MASTER_EMAIL)

        assert isinstance(exc.value.__cause__, TrackerError)
        assert repo.writes == 0

    @pytest.mark.asyncio
    async def test_pending_variant_uses_effective_category(self, settings):
        """Test the pending variant uses override or derived category"""
        tickets = [
            make_ticket("HELP-1", status="Pending"),
            make_ticket("HELP-2", status="In Progress"),
            make_ticket("HELP-3", status="In Progress"),
            make_ticket("HELP-4", status="Pending"),
        ]
        overrides = {"HELP-3": Category.PENDING_REPLY, "HELP-4": Category.IN_PROGRESS}
        service, repo, _ = _service(settings, tickets, overrides)

        result = await service.bulk_resolve_pending(MASTER_EMAIL)

        assert result.resolved == 2
        assert repo.rows["HELP-1"].category == Category.RESOLVED
        assert repo.rows["HELP-3"].category == Category.RESOLVED
        assert repo.rows["HELP-4"].category == Category.IN_PROGRESS
        assert "HELP-2" not in repo.rows


class TestCategorySync:

    @pytest.mark.asyncio
    async def test_bulk_sync_counts(self, settings):
        """Test store to Jira sync counts"""
        tickets = [make_ticket("HELP-1"), make_ticket("HELP-2")]
        overrides = {"HELP-1": Category.RESOLVED, "HELP-2": Category.PENDING_REPLY}
        service, _, jira = _service(settings, tickets, overrides)

        async def transition(key, target, resolution=None):
            if key == "HELP-2":
                raise TransitionUnavailable(key, target, [])
            return True

        jira.transition.side_effect = transition

        result = await service.bulk_sync_all_categories()

        assert (result.total, result.updated, result.failed) == (2, 1, 1)
        assert result.errors == ["HELP-2: could not move to 'Pending Reply'"]

    @pytest.mark.asyncio
    async def test_pending_to_in_progress(self, settings):
        """Test Pending Reply tickets move to In Progress in Jira"""
        tickets = [
            make_ticket("HELP-1", status="Pending"),
            make_ticket("HELP-2", status="In Progress"),
        ]
        overrides = {
            "HELP-1": Category.PENDING_REPLY,
            "HELP-2": Category.PENDING_REPLY,
            "HELP-3": Category.PENDING_REPLY,
            "HELP-4": Category.RESOLVED,
        }
        service, _, jira = _service(settings, tickets, overrides)

        result = await service.sync_pending_to_in_progress()

        assert result.total == 3
        assert result.updated == 1
        assert result.errors == []
        jira.transition.assert_awaited_once_with("HELP-1", "In Progress")
