"""
Bulk reconciliation jobs

Mass cleanup between the category store and Jira:
- Bulk resolve (every ticket, or only tickets whose display category is
  Pending Reply)
- Push every stored category to Jira
- Move Jira status of Pending Reply tickets back to In Progress

Tickets are processed strictly one at a time with a fixed pause between
Jira writes to stay under the provider's rate limits. One ticket failing
never aborts the run; its error is collected and the loop continues.
"""
import asyncio
from typing import Awaitable, Callable, Dict, List, Optional

from helpdesk.config import Settings, get_settings
from helpdesk.exceptions import (
    BulkOperationFailed,
    HelpdeskError,
    TrackerError,
    TransitionUnavailable,
    Unauthorized,
)
from helpdesk.models.schemas import (
    BulkResolveResult,
    Category,
    CategorySyncResult,
    Ticket,
)
from helpdesk.services.category_mapper import map_status_to_category
from helpdesk.services.category_sync import CategorySyncService
from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class BulkReconciliationService:
    """Sequential, failure-isolated bulk operations"""

    def __init__(
        self,
        sync: CategorySyncService,
        settings: Optional[Settings] = None,
        sleep: Sleep = asyncio.sleep
    ):
        self.sync = sync
        self.jira = sync.jira
        self.settings = settings or get_settings()
        self.sleep = sleep

    def authorize(self, initiator_email: str) -> None:
        """
        Raises:
            ConfigurationError: No master account configured
            Unauthorized: Initiator is not the master account
        """
        self.settings.require_master()
        if not self.settings.is_master(initiator_email):
            logger.warning(f"Unauthorized bulk operation attempt by {initiator_email}")
            raise Unauthorized("Only the master account can perform bulk operations")

    async def _pause(self, index: int, total: int) -> None:
        if index < total - 1 and self.settings.bulk_operation_delay > 0:
            await self.sleep(self.settings.bulk_operation_delay)

    # ------------------------------------------------------------------
    # Bulk resolve
    # ------------------------------------------------------------------
    async def _fetch_all_tickets(self) -> List[Ticket]:
        try:
            return await self.jira.get_all_tickets()
        except TrackerError as e:
            logger.error(f"Bulk resolve aborted, ticket search failed: {e}")
            raise BulkOperationFailed(f"Could not fetch tickets from Jira: {e}") from e

    async def _resolve_one(self, ticket: Ticket) -> None:
        """Jira to a Done-equivalent state, then category to Resolved"""
        if map_status_to_category(ticket.status) == Category.RESOLVED:
            logger.info(f"{ticket.key} already '{ticket.status}', no Jira write")
        else:
            await self.sync.push_category(ticket.key, Category.RESOLVED, ticket=ticket)
        await self.sync.upsert_category(ticket.key, Category.RESOLVED)

    async def _resolve_all(self, tickets: List[Ticket]) -> BulkResolveResult:
        result = BulkResolveResult()

        for index, ticket in enumerate(tickets):
            try:
                await self._resolve_one(ticket)
                result.resolved += 1
                logger.info(f"Resolved {ticket.key}")
            except HelpdeskError as e:
                result.failed += 1
                result.errors.append(f"{ticket.key}: {e}")
                logger.error(f"Failed to resolve {ticket.key}: {e}")
            await self._pause(index, len(tickets))

        logger.info(
            f"Bulk resolve completed: {result.resolved} resolved, {result.failed} failed"
        )
        return result

    async def bulk_resolve(self, initiator_email: str) -> BulkResolveResult:
        """
        Resolve every ticket in the project

        Raises:
            Unauthorized: Before any read or write
            BulkOperationFailed: The ticket search itself failed
        """
        self.authorize(initiator_email)
        tickets = await self._fetch_all_tickets()
        logger.info(f"Bulk resolve: {len(tickets)} tickets")
        return await self._resolve_all(tickets)

    async def bulk_resolve_pending(self, initiator_email: str) -> BulkResolveResult:
        """
        Resolve tickets whose display category is Pending Reply

        The category comes from the override row when present, otherwise
        from the Jira status.
        """
        self.authorize(initiator_email)
        tickets = await self._fetch_all_tickets()
        overrides: Dict[str, Category] = {
            row.ticket_key: row.category
            for row in await self.sync.categories.list_categories_async()
        }
        pending = [
            ticket for ticket in tickets
            if self.sync.effective_category(ticket, overrides) == Category.PENDING_REPLY
        ]
        logger.info(f"Bulk resolve: {len(pending)} of {len(tickets)} tickets are Pending Reply")
        return await self._resolve_all(pending)

    # ------------------------------------------------------------------
    # Store -> Jira
    # ------------------------------------------------------------------
    async def bulk_sync_all_categories(self) -> CategorySyncResult:
        """
        Push every stored category to Jira

        Raises:
            StoreError: Category rows could not be listed
        """
        rows = await self.sync.categories.list_categories_async()
        result = CategorySyncResult(total=len(rows))
        logger.info(f"Syncing {len(rows)} stored categories to Jira")

        for index, row in enumerate(rows):
            if await self.sync.sync_category_to_tracker(row.ticket_key, row.category):
                result.updated += 1
            else:
                result.failed += 1
                result.errors.append(f"{row.ticket_key}: could not move to '{row.category.value}'")
            await self._pause(index, len(rows))

        logger.info(
            f"Category sync completed: {result.updated} updated, {result.failed} failed"
        )
        return result

    async def sync_pending_to_in_progress(self) -> CategorySyncResult:
        """
        Move Jira status of Pending Reply tickets to In Progress

        Tickets missing from Jira or already In Progress are left alone.
        """
        rows = await self.sync.categories.list_categories_async(Category.PENDING_REPLY)
        result = CategorySyncResult(total=len(rows))

        for index, row in enumerate(rows):
            try:
                ticket = await self.jira.get_ticket(row.ticket_key)
                if ticket is None:
                    logger.info(f"{row.ticket_key} not found in Jira, skipping")
                elif ticket.status.strip().lower() == "in progress":
                    logger.info(f"{row.ticket_key} already In Progress, skipping")
                else:
                    await self.jira.transition(row.ticket_key, "In Progress")
                    result.updated += 1
            except TransitionUnavailable as e:
                result.failed += 1
                result.errors.append(f"Failed to update {row.ticket_key}: {e}")
                logger.warning(str(e))
            except HelpdeskError as e:
                result.failed += 1
                result.errors.append(f"Error updating {row.ticket_key}: {e}")
                logger.error(f"Error updating {row.ticket_key}: {e}")
            await self._pause(index, len(rows))

        return result
