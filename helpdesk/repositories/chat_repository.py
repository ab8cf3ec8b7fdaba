"""
Chat Message Repository

Stores the portal chat thread in `chat_messages`. Messages are append-only.
"""
from typing import List

from helpdesk.models.schemas import ChatMessage, ChatRole
from helpdesk.repositories.base_repository import BaseRepository
from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)


class ChatMessageRepository(BaseRepository):
    """Repository for chat_messages table operations."""

    table_name = "chat_messages"

    def insert_message(
        self,
        ticket_key: str,
        user_email: str,
        message: str,
        role: ChatRole
    ) -> ChatMessage:
        """Persist one message and return the stored row"""
        payload = {
            "ticket_key": ticket_key,
            "user_email": user_email,
            "message": message,
            "role": ChatRole(role).value,
        }
        try:
            response = self._table().insert(payload).execute()
        except Exception as exc:
            raise self._handle_error(f"insert message for {ticket_key}", exc) from exc

        if not response.data:
            raise self._handle_error(
                f"insert message for {ticket_key}",
                ValueError("Supabase insert returned no data")
            )

        stored = ChatMessage(**response.data[0])
        logger.info("Saved %s message %s on %s", stored.role.value, stored.id, ticket_key)
        return stored

    async def insert_message_async(
        self,
        ticket_key: str,
        user_email: str,
        message: str,
        role: ChatRole
    ) -> ChatMessage:
        return await self._to_thread(self.insert_message, ticket_key, user_email, message, role)

    def list_messages(self, ticket_key: str) -> List[ChatMessage]:
        """Messages for a ticket, oldest first"""
        try:
            response = self._table() \
                .select("*") \
                .eq("ticket_key", ticket_key) \
                .order("created_at", desc=False) \
                .execute()
        except Exception as exc:
            raise self._handle_error(f"list messages for {ticket_key}", exc) from exc

        return [ChatMessage(**row) for row in response.data or []]

    async def list_messages_async(self, ticket_key: str) -> List[ChatMessage]:
        return await self._to_thread(self.list_messages, ticket_key)
