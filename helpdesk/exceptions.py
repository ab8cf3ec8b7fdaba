"""
Error taxonomy shared by services and routes
"""
from typing import List, Optional


class HelpdeskError(Exception):
    """Base class for all portal errors"""


class ConfigurationError(HelpdeskError):
    """Required credentials or settings are missing"""


class Unauthorized(HelpdeskError):
    """Caller is not allowed to perform the operation"""


class TrackerError(HelpdeskError):
    """Transport or HTTP failure talking to Jira"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransitionUnavailable(HelpdeskError):
    """Target workflow state is not reachable from the ticket's current state"""

    def __init__(self, ticket_key: str, target: str, available: Optional[List[str]] = None):
        self.ticket_key = ticket_key
        self.target = target
        self.available = available or []
        super().__init__(
            f"No transition to '{target}' available for {ticket_key} "
            f"(available: {', '.join(self.available) or 'none'})"
        )


class StoreError(HelpdeskError):
    """Supabase read or write failed"""


class PollingExhausted(HelpdeskError):
    """Bounded polling ran out of attempts"""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Gave up after {attempts} attempts")


class BulkOperationFailed(HelpdeskError):
    """A bulk job could not start, e.g. the ticket search itself failed"""
