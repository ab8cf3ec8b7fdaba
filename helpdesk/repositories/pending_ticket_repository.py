"""
Pending Ticket Repository

Provisional ticket records (`pending_tickets`) created before the mail
pipeline has produced the real Jira issue.
"""
import time
from typing import Any, Dict, List, Optional, Union

from helpdesk.models.schemas import PendingStatus, PendingTicket
from helpdesk.repositories.base_repository import BaseRepository
from helpdesk.utils.logger import get_logger
from helpdesk.utils.validators import normalize_email

logger = get_logger(__name__)


class PendingTicketRepository(BaseRepository):
    """Repository for pending_tickets table operations."""

    table_name = "pending_tickets"

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------
    def insert_pending_ticket(
        self,
        user_email: str,
        email_timestamp: Optional[int] = None
    ) -> PendingTicket:
        payload = {
            "user_email": normalize_email(user_email),
            "status": PendingStatus.PENDING.value,
            "email_timestamp": email_timestamp or int(time.time() * 1000),
        }
        try:
            response = self._table().insert(payload).execute()
        except Exception as exc:
            raise self._handle_error(f"insert pending ticket for {user_email}", exc) from exc

        if not response.data:
            raise self._handle_error(
                f"insert pending ticket for {user_email}",
                ValueError("Supabase insert returned no data")
            )

        pending = PendingTicket(**response.data[0])
        logger.info("Created pending ticket %s for %s", pending.id, user_email)
        return pending

    async def insert_pending_ticket_async(
        self,
        user_email: str,
        email_timestamp: Optional[int] = None
    ) -> PendingTicket:
        return await self._to_thread(self.insert_pending_ticket, user_email, email_timestamp)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------
    def get_pending_ticket(self, pending_id: Union[int, str]) -> Optional[PendingTicket]:
        try:
            response = self._table() \
                .select("*") \
                .eq("id", pending_id) \
                .limit(1) \
                .execute()
        except Exception as exc:
            raise self._handle_error(f"get pending ticket {pending_id}", exc) from exc

        rows = response.data or []
        return PendingTicket(**rows[0]) if rows else None

    async def get_pending_ticket_async(self, pending_id: Union[int, str]) -> Optional[PendingTicket]:
        return await self._to_thread(self.get_pending_ticket, pending_id)

    def list_pending_tickets(self, user_email: str) -> List[PendingTicket]:
        """Pending records for a user, newest first"""
        try:
            response = self._table() \
                .select("*") \
                .eq("user_email", normalize_email(user_email)) \
                .order("created_at", desc=True) \
                .execute()
        except Exception as exc:
            raise self._handle_error(f"list pending tickets for {user_email}", exc) from exc

        return [PendingTicket(**row) for row in response.data or []]

    async def list_pending_tickets_async(self, user_email: str) -> List[PendingTicket]:
        return await self._to_thread(self.list_pending_tickets, user_email)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------
    def _update(self, pending_id: Union[int, str], updates: Dict[str, Any]) -> PendingTicket:
        try:
            self._table() \
                .update(updates) \
                .eq("id", pending_id) \
                .execute()
        except Exception as exc:
            raise self._handle_error(f"update pending ticket {pending_id}", exc) from exc

        updated = self.get_pending_ticket(pending_id)
        if updated is None:
            raise self._handle_error(
                f"update pending ticket {pending_id}",
                ValueError(f"Pending ticket {pending_id} not found")
            )
        return updated

    def mark_created(self, pending_id: Union[int, str], ticket_key: str) -> PendingTicket:
        return self._update(pending_id, {
            "status": PendingStatus.CREATED.value,
            "ticket_key": ticket_key,
        })

    async def mark_created_async(self, pending_id: Union[int, str], ticket_key: str) -> PendingTicket:
        return await self._to_thread(self.mark_created, pending_id, ticket_key)

    def mark_failed(self, pending_id: Union[int, str], error_message: str) -> PendingTicket:
        return self._update(pending_id, {
            "status": PendingStatus.FAILED.value,
            "error_message": error_message,
        })

    async def mark_failed_async(self, pending_id: Union[int, str], error_message: str) -> PendingTicket:
        return await self._to_thread(self.mark_failed, pending_id, error_message)
