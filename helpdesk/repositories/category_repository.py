"""
Category Repository

CRUD for the `ticket_categories` table. Every writer goes through
`upsert_category`, which relies on the unique `ticket_key` constraint, so
concurrent writers never create duplicate rows (last write wins).
"""
from datetime import datetime, timezone
from typing import Dict, List, Optional

from helpdesk.models.schemas import Category, CategoryOverride
from helpdesk.repositories.base_repository import BaseRepository
from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)


class CategoryRepository(BaseRepository):
    """Repository for ticket_categories table operations."""

    table_name = "ticket_categories"

    @staticmethod
    def _deserialize(row: Dict) -> Optional[CategoryOverride]:
        category = Category.parse(row.get("category"))
        if category is None:
            logger.warning(
                "Ignoring invalid category %r for ticket %s", row.get("category"), row.get("ticket_key")
            )
            return None
        return CategoryOverride(
            ticket_key=row["ticket_key"],
            category=category,
            updated_at=row.get("updated_at"),
        )

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------
    def upsert_category(self, ticket_key: str, category: Category) -> CategoryOverride:
        """Insert or replace the override row for a ticket"""
        payload = {
            "ticket_key": ticket_key,
            "category": Category(category).value,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            response = self._table() \
                .upsert(payload, on_conflict="ticket_key") \
                .execute()
        except Exception as exc:
            raise self._handle_error(f"upsert {ticket_key}", exc) from exc

        logger.info("Category for %s set to '%s'", ticket_key, payload["category"])
        rows = response.data or [payload]
        return self._deserialize(rows[0])

    async def upsert_category_async(self, ticket_key: str, category: Category) -> CategoryOverride:
        return await self._to_thread(self.upsert_category, ticket_key, category)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------
    def get_category(self, ticket_key: str) -> Optional[CategoryOverride]:
        """Override row for a ticket, or None"""
        try:
            response = self._table() \
                .select("*") \
                .eq("ticket_key", ticket_key) \
                .limit(1) \
                .execute()
        except Exception as exc:
            raise self._handle_error(f"get {ticket_key}", exc) from exc

        rows = response.data or []
        return self._deserialize(rows[0]) if rows else None

    async def get_category_async(self, ticket_key: str) -> Optional[CategoryOverride]:
        return await self._to_thread(self.get_category, ticket_key)

    def list_categories(self, category: Optional[Category] = None) -> List[CategoryOverride]:
        """All valid override rows, optionally restricted to one category"""
        try:
            query = self._table().select("*")
            if category is not None:
                query = query.eq("category", Category(category).value)
            response = query.execute()
        except Exception as exc:
            raise self._handle_error("list", exc) from exc

        overrides = [self._deserialize(row) for row in response.data or []]
        return [override for override in overrides if override is not None]

    async def list_categories_async(self, category: Optional[Category] = None) -> List[CategoryOverride]:
        return await self._to_thread(self.list_categories, category)
