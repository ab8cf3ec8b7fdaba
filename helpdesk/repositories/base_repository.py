"""
Base Repository

Shared Supabase client construction and error handling for the
table repositories.
"""
import asyncio
from typing import Any, Callable, Optional, TypeVar

from helpdesk.config import Settings, get_settings
from helpdesk.exceptions import StoreError
from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class BaseRepository:
    """
    Base repository class.

    Repositories take an injected client (tests pass a MagicMock); otherwise
    a service-role Supabase client is created from settings.
    """

    table_name: str = ""

    def __init__(self, supabase_client=None, settings: Optional[Settings] = None) -> None:
        if supabase_client is None:
            from supabase import create_client  # Lazy import for tests

            settings = settings or get_settings()
            settings.require_supabase()
            self.client = create_client(
                settings.supabase_url,
                settings.supabase_service_role_key
            )
        else:
            self.client = supabase_client

        logger.debug("%s initialized for table: %s", type(self).__name__, self.table_name)

    def _table(self):
        return self.client.table(self.table_name)

    def _handle_error(self, operation: str, error: Exception) -> StoreError:
        """
        Centralized error handling for repository operations.

        Args:
            operation: Description of failed operation
            error: Exception that occurred

        Returns:
            StoreError for the caller to raise
        """
        logger.error("Repository error during %s on %s: %s", operation, self.table_name, error)
        return StoreError(f"{operation} failed: {error}")

    @staticmethod
    async def _to_thread(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run a blocking PostgREST call off the event loop"""
        return await asyncio.to_thread(func, *args, **kwargs)
