"""
Message-driven category transitions

Runs after every persisted chat message and flips the ticket between
"Pending Reply" and "In Progress":

- Pending Reply + any sender           -> In Progress (a response reopens work)
- In Progress / unset + non-master     -> Pending Reply (awaiting support)
- anything else (incl. Resolved)       -> unchanged

The Jira nudge always targets the new display category; the issue status
only decides whether it is needed. The store write and the Jira nudge are
independent best-effort tasks: one failing never rolls back or blocks the
other.
"""
import asyncio
from dataclasses import dataclass, field
from typing import List, Optional

from helpdesk.config import Settings, get_settings
from helpdesk.exceptions import HelpdeskError
from helpdesk.models.schemas import Category, Ticket
from helpdesk.services.category_mapper import map_status_to_category
from helpdesk.services.category_sync import CategorySyncService
from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)


def decide_category(current: Optional[Category], sender_is_master: bool) -> Optional[Category]:
    """
    New display category after a message, or None for no transition

    Args:
        current: Effective category (None when unknown)
        sender_is_master: Whether the master support account wrote the message
    """
    if current == Category.PENDING_REPLY:
        return Category.IN_PROGRESS
    if not sender_is_master and current in (Category.IN_PROGRESS, None):
        return Category.PENDING_REPLY
    return None


def decide_tracker_target(
    status: Optional[str],
    target: Optional[Category],
    sender_is_master: bool
) -> Optional[Category]:
    """
    Jira-side mirror of the store transition, or None when no move is needed

    The Jira target is always the new display category. The status keywords
    only gate whether the issue sits in a state that move applies to:
    "pending" for In Progress, "progress"/"in development" for Pending Reply
    when a customer wrote.
    """
    lowered = (status or "").lower()
    if target == Category.IN_PROGRESS and "pending" in lowered:
        return target
    if (
        target == Category.PENDING_REPLY
        and not sender_is_master
        and ("progress" in lowered or "in development" in lowered)
    ):
        return target
    return None


@dataclass
class TransitionOutcome:
    """What the engine decided and which writes went through"""
    ticket_key: str
    previous: Optional[Category]
    category: Optional[Category] = None
    tracker_target: Optional[Category] = None
    store_updated: bool = False
    tracker_updated: Optional[bool] = None
    errors: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.category is not None


class MessageTransitionEngine:
    """Applies the message rules to the store and to Jira"""

    def __init__(self, sync: CategorySyncService, settings: Optional[Settings] = None):
        self.sync = sync
        self.settings = settings or get_settings()

    async def _load_state(self, ticket_key: str):
        override = None
        ticket: Optional[Ticket] = None

        try:
            override = await self.sync.get_override(ticket_key)
        except HelpdeskError as e:
            logger.warning(f"Could not read category override for {ticket_key}: {e}")

        try:
            ticket = await self.sync.jira.get_ticket(ticket_key)
        except HelpdeskError as e:
            logger.warning(f"Could not read Jira status for {ticket_key}: {e}")

        if override is not None:
            current = override.category
        elif ticket is not None:
            current = map_status_to_category(ticket.status)
        else:
            current = None
        return current, ticket

    async def _write_store(self, ticket_key: str, category: Category) -> bool:
        await self.sync.upsert_category(ticket_key, category)
        return True

    async def process_message(self, ticket_key: str, sender_email: str) -> TransitionOutcome:
        """
        Evaluate and apply the transition rules for one new message

        Never raises; failures are logged and reported in the outcome.
        """
        sender_is_master = self.settings.is_master(sender_email)
        current, ticket = await self._load_state(ticket_key)

        outcome = TransitionOutcome(ticket_key=ticket_key, previous=current)
        if current == Category.RESOLVED:
            logger.info(f"{ticket_key} is Resolved, message does not change category")
            return outcome

        outcome.category = decide_category(current, sender_is_master)
        if ticket is not None:
            outcome.tracker_target = decide_tracker_target(
                ticket.status, outcome.category, sender_is_master
            )

        if outcome.category is None:
            logger.info(
                f"No transition for {ticket_key} (category={current.value if current else None}, "
                f"master={sender_is_master})"
            )
            return outcome

        store_task = self._write_store(ticket_key, outcome.category)
        tracker_task = (
            self.sync.sync_category_to_tracker(ticket_key, outcome.tracker_target, ticket=ticket)
            if outcome.tracker_target is not None else asyncio.sleep(0, result=None)
        )
        store_result, tracker_result = await asyncio.gather(
            store_task, tracker_task, return_exceptions=True
        )

        if isinstance(store_result, Exception):
            message = f"Category write failed for {ticket_key}: {store_result}"
            logger.error(message)
            outcome.errors.append(message)
        else:
            outcome.store_updated = True
            logger.info(
                f"{ticket_key}: {current.value if current else 'unset'} -> {outcome.category.value}"
            )

        if isinstance(tracker_result, Exception):
            message = f"Jira transition failed for {ticket_key}: {tracker_result}"
            logger.error(message)
            outcome.errors.append(message)
            outcome.tracker_updated = False
        elif outcome.tracker_target is not None:
            outcome.tracker_updated = bool(tracker_result)
            if not tracker_result:
                outcome.errors.append(
                    f"Jira transition to '{outcome.tracker_target.value}' not applied for {ticket_key}"
                )

        return outcome
