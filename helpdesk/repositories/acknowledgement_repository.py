"""
Acknowledgement Repository

Durable record of verified auto-acknowledgement correlations
(`acknowledgements` table).
"""
from datetime import datetime
from typing import Any, Dict, Optional

from helpdesk.models.schemas import Acknowledgement
from helpdesk.repositories.base_repository import BaseRepository
from helpdesk.utils.validators import normalize_email


class AcknowledgementRepository(BaseRepository):
    """Repository for acknowledgements table operations."""

    table_name = "acknowledgements"

    @staticmethod
    def _serialize_payload(ack: Acknowledgement) -> Dict[str, Any]:
        """Prepare payload for Supabase (datetimes to ISO, strip None)."""
        serialized: Dict[str, Any] = {}
        for key, value in ack.model_dump(exclude={"id", "created_at"}).items():
            if value is None:
                continue
            if isinstance(value, datetime):
                serialized[key] = value.isoformat()
            else:
                serialized[key] = value
        serialized["customer_email"] = normalize_email(ack.customer_email)
        return serialized

    def insert_acknowledgement(self, ack: Acknowledgement) -> Acknowledgement:
        try:
            response = self._table().insert(self._serialize_payload(ack)).execute()
        except Exception as exc:
            raise self._handle_error(f"insert acknowledgement for {ack.ticket_key}", exc) from exc

        return Acknowledgement(**response.data[0]) if response.data else ack

    async def insert_acknowledgement_async(self, ack: Acknowledgement) -> Acknowledgement:
        return await self._to_thread(self.insert_acknowledgement, ack)

    def get_latest_acknowledgement(self, customer_email: str) -> Optional[Acknowledgement]:
        """Most recent verified acknowledgement for a customer"""
        try:
            response = self._table() \
                .select("*") \
                .eq("customer_email", normalize_email(customer_email)) \
                .eq("verified", True) \
                .order("created_at", desc=True) \
                .limit(1) \
                .execute()
        except Exception as exc:
            raise self._handle_error(f"latest acknowledgement for {customer_email}", exc) from exc

        rows = response.data or []
        return Acknowledgement(**rows[0]) if rows else None

    async def get_latest_acknowledgement_async(self, customer_email: str) -> Optional[Acknowledgement]:
        return await self._to_thread(self.get_latest_acknowledgement, customer_email)
