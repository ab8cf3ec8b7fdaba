"""
Pending ticket resolution

A pending record is created when the customer sends the ticket email. The
real Jira issue appears later, created by the mail pipeline. Resolution
polls Jira a bounded number of times for a ticket attributed to the
customer whose creation time matches the email, then marks the record
`created` or `failed`.
"""
from typing import Awaitable, Callable, Optional, Union
import asyncio

from helpdesk.exceptions import PollingExhausted
from helpdesk.models.schemas import PendingStatus, PendingTicket, Ticket
from helpdesk.repositories.pending_ticket_repository import PendingTicketRepository
from helpdesk.services.acknowledgement import AcknowledgementVerifier
from helpdesk.services.polling import poll_until
from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)


class PendingTicketService:
    """Turns pending records into created/failed ones"""

    def __init__(
        self,
        repository: PendingTicketRepository,
        verifier: AcknowledgementVerifier,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.repository = repository
        self.verifier = verifier
        self.sleep = sleep

    async def _find_ticket(self, pending: PendingTicket) -> Optional[Ticket]:
        result = await self.verifier.verify(pending.user_email, pending.email_timestamp)
        return result.ticket if result.verified else None

    async def resolve(
        self,
        pending_id: Union[int, str],
        max_attempts: int = 10,
        interval: float = 3.0
    ) -> Optional[PendingTicket]:
        """
        Poll for the real ticket and update the record

        Returns:
            Updated record, the unchanged record if it was already settled,
            or None when no such record exists
        """
        pending = await self.repository.get_pending_ticket_async(pending_id)
        if pending is None:
            return None
        if pending.status != PendingStatus.PENDING:
            return pending

        try:
            ticket = await poll_until(
                lambda: self._find_ticket(pending),
                max_attempts=max_attempts,
                interval=interval,
                sleep=self.sleep,
            )
        except PollingExhausted as e:
            logger.warning(f"Pending ticket {pending_id} for {pending.user_email}: {e}")
            return await self.repository.mark_failed_async(
                pending_id, f"No matching ticket after {e.attempts} attempts"
            )

        logger.info(f"Pending ticket {pending_id} resolved to {ticket.key}")
        return await self.repository.mark_created_async(pending_id, ticket.key)
