"""
Category <-> Jira status synchronization

Two one-way pushes, no merge: whichever side is explicitly invoked wins for
that call.

- Store -> Jira: move the issue to the workflow state matching a category.
- Jira -> Store: on read, derive the category from the Jira status when no
  override row exists. Writes only happen through `upsert_category`.
"""
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from helpdesk.exceptions import StoreError, TrackerError, TransitionUnavailable
from helpdesk.models.schemas import Category, CategoryOverride, Ticket
from helpdesk.repositories.category_repository import CategoryRepository
from helpdesk.services.category_mapper import map_status_to_category
from helpdesk.services.jira import JiraClient
from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class StatusTarget:
    """Jira status names (tried in order) and resolution for a category"""
    statuses: Tuple[str, ...]
    resolution: Optional[str] = None


CATEGORY_TARGETS: Dict[Category, StatusTarget] = {
    Category.IN_PROGRESS: StatusTarget(("In Progress",)),
    Category.PENDING_REPLY: StatusTarget(("Pending Reply", "Pending")),
    Category.RESOLVED: StatusTarget(("Done", "Resolved"), resolution="Done"),
}


class CategorySyncService:
    """
    Pushes display categories to Jira and resolves the effective category
    of a ticket.
    """

    def __init__(self, jira: JiraClient, categories: CategoryRepository):
        self.jira = jira
        self.categories = categories

    # ------------------------------------------------------------------
    # Store -> Jira
    # ------------------------------------------------------------------
    async def push_category(
        self,
        ticket_key: str,
        category: Category,
        ticket: Optional[Ticket] = None
    ) -> bool:
        """
        Transition the Jira issue to the state matching `category`.

        Returns True without a write when the issue is already there.

        Raises:
            TransitionUnavailable: None of the target states is reachable
            TrackerError: Jira request failed
        """
        target = CATEGORY_TARGETS[Category(category)]

        if ticket is None:
            ticket = await self.jira.get_ticket(ticket_key)
            if ticket is None:
                raise TrackerError(f"Ticket {ticket_key} not found", status_code=404)

        current = ticket.status.strip().lower()
        if any(current == status.lower() for status in target.statuses):
            logger.info(f"{ticket_key} already in '{ticket.status}', no transition needed")
            return True

        unavailable: Optional[TransitionUnavailable] = None
        for status in target.statuses:
            try:
                return await self.jira.transition(ticket_key, status, resolution=target.resolution)
            except TransitionUnavailable as e:
                unavailable = e

        raise unavailable

    async def sync_category_to_tracker(
        self,
        ticket_key: str,
        category,
        ticket: Optional[Ticket] = None
    ) -> bool:
        """
        Best-effort Store -> Jira push

        Args:
            ticket_key: Jira issue key
            category: Category or its display string
            ticket: Already-fetched ticket, saves a lookup

        Returns:
            True on success; False when the category is invalid, no matching
            transition exists or Jira failed. Never raises for those.
        """
        parsed = Category.parse(category)
        if parsed is None:
            logger.warning(f"Invalid category '{category}' for {ticket_key}, not syncing")
            return False

        try:
            return await self.push_category(ticket_key, parsed, ticket=ticket)
        except TransitionUnavailable as e:
            logger.warning(f"Sync skipped: {e}")
        except TrackerError as e:
            logger.error(f"Failed to sync {ticket_key} to '{parsed.value}': {e}")
        return False

    # ------------------------------------------------------------------
    # Jira -> Store (read path)
    # ------------------------------------------------------------------
    async def get_override(self, ticket_key: str) -> Optional[CategoryOverride]:
        return await self.categories.get_category_async(ticket_key)

    async def get_display_category(
        self,
        ticket_key: str,
        ticket: Optional[Ticket] = None
    ) -> Optional[Tuple[Category, str]]:
        """
        Effective display category and where it came from

        Returns:
            (category, "override") when a row exists, otherwise
            (mapped category, "derived"); None if the ticket does not exist.
        """
        override = await self.get_override(ticket_key)
        if override is not None:
            return override.category, "override"

        if ticket is None:
            ticket = await self.jira.get_ticket(ticket_key)
        if ticket is None:
            return None
        return map_status_to_category(ticket.status), "derived"

    @staticmethod
    def effective_category(ticket: Ticket, overrides: Dict[str, Category]) -> Category:
        """Display category from a preloaded override map"""
        return overrides.get(ticket.key) or map_status_to_category(ticket.status)

    # ------------------------------------------------------------------
    # Upsert primitive
    # ------------------------------------------------------------------
    async def upsert_category(self, ticket_key: str, category: Category) -> CategoryOverride:
        """Idempotent insert-or-replace of the override row"""
        return await self.categories.upsert_category_async(ticket_key, Category(category))

    async def resolve_ticket(self, ticket_key: str) -> Dict[str, bool]:
        """
        Resolve button: Jira to Done and category to Resolved.

        Both writes are attempted independently.
        """
        jira_ok = await self.sync_category_to_tracker(ticket_key, Category.RESOLVED)

        store_ok = True
        try:
            await self.upsert_category(ticket_key, Category.RESOLVED)
        except StoreError as e:
            logger.error(f"Failed to store Resolved for {ticket_key}: {e}")
            store_ok = False

        return {"jira": jira_ok, "store": store_ok}
