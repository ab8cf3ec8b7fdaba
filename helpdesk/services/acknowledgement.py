"""
Acknowledgement verification

Correlates an "auto-acknowledgement sent" signal with a real, recently
created Jira ticket, and enforces the wait window before a customer is sent
on to the ticket page.

All time arithmetic is in epoch milliseconds.
"""
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Union

from dateutil import parser as date_parser

from helpdesk.exceptions import StoreError
from helpdesk.models.schemas import Acknowledgement, Ticket
from helpdesk.repositories.acknowledgement_repository import AcknowledgementRepository
from helpdesk.services.ack_cache import TTLCache
from helpdesk.services.jira import JiraClient
from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)

MINUTE_MS = 60 * 1000
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Claimed email time vs ticket creation time
CORRELATION_WINDOW_MS = 10 * MINUTE_MS
# Without a claimed time the ticket must simply be this fresh
RECENT_TICKET_WINDOW_MS = 15 * MINUTE_MS
# Redirect to the ticket page is allowed between these two ages
MIN_SUBMISSION_WAIT_MS = 1 * MINUTE_MS
MAX_SUBMISSION_AGE_MS = 10 * MINUTE_MS

ACKNOWLEDGEMENT_SENT = "acknowledgement_sent"

Timestamp = Union[int, float, str, datetime]


def now_ms() -> int:
    return int(time.time() * 1000)


def to_epoch_ms(value: Timestamp) -> int:
    """
    Normalize a timestamp to epoch milliseconds

    Accepts epoch milliseconds (int/float or digit string), ISO-8601 strings
    and datetimes. Naive datetimes are treated as UTC.

    Raises:
        ValueError: Unparseable value
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.isdigit():
            return int(stripped)
        value = date_parser.isoparse(stripped)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return (value - EPOCH) // timedelta(milliseconds=1)
    raise ValueError(f"Invalid timestamp: {value!r}")


@dataclass
class VerificationResult:
    """Outcome of correlating an acknowledgement with a ticket"""
    verified: bool
    reason: str
    ticket: Optional[Ticket] = None
    delta_ms: Optional[int] = None


@dataclass
class SubmissionWindowResult:
    """Outcome of the redirect wait-window check"""
    allowed: bool
    reason: str
    time_remaining: Optional[int] = None
    expired: bool = False


def check_submission_window(submission_timestamp: Timestamp, current_ms: Optional[int] = None) -> SubmissionWindowResult:
    """
    Allow the redirect only between 1 and 10 minutes after submission

    Too early: `time_remaining` is the wait in whole seconds (rounded up).
    Too late: `expired` is set.
    """
    current_ms = now_ms() if current_ms is None else current_ms
    difference = abs(current_ms - to_epoch_ms(submission_timestamp))

    if difference < MIN_SUBMISSION_WAIT_MS:
        remaining_ms = MIN_SUBMISSION_WAIT_MS - difference
        return SubmissionWindowResult(
            allowed=False,
            reason="Too soon - please wait for auto-acknowledgement email",
            time_remaining=-(-remaining_ms // 1000),
        )

    if difference > MAX_SUBMISSION_AGE_MS:
        return SubmissionWindowResult(
            allowed=False,
            reason="Return link expired - please submit a new ticket",
            expired=True,
        )

    return SubmissionWindowResult(allowed=True, reason="Auto-acknowledgement verified successfully")


class AcknowledgementVerifier:
    """
    Checks that an acknowledgement matches the customer's latest ticket

    A failed match is a normal result (verified=False). Jira lookup errors
    propagate as TrackerError so callers can tell them apart.
    """

    def __init__(self, jira: JiraClient, clock: Callable[[], int] = now_ms):
        self.jira = jira
        self.clock = clock

    async def verify(
        self,
        customer_email: str,
        claimed_timestamp: Optional[Timestamp] = None
    ) -> VerificationResult:
        ticket = await self.jira.get_latest_ticket_by_user(customer_email)
        if ticket is None or ticket.created is None:
            logger.info(f"No ticket found for {customer_email}")
            return VerificationResult(verified=False, reason="No recent ticket found for this customer")

        created_ms = to_epoch_ms(ticket.created)

        if claimed_timestamp is not None:
            delta = abs(created_ms - to_epoch_ms(claimed_timestamp))
            if delta <= CORRELATION_WINDOW_MS:
                logger.info(f"Acknowledgement for {customer_email} matches {ticket.key} (delta {delta}ms)")
                return VerificationResult(True, "Email time matches ticket creation", ticket, delta)
            logger.info(f"Acknowledgement for {customer_email} off by {delta}ms from {ticket.key}")
            return VerificationResult(
                False, "Time difference between email and ticket too large", ticket, delta
            )

        age = self.clock() - created_ms
        if age <= RECENT_TICKET_WINDOW_MS:
            return VerificationResult(True, "Recent ticket found", ticket, age)
        logger.info(f"Latest ticket {ticket.key} for {customer_email} is too old ({age}ms)")
        return VerificationResult(False, "Latest ticket is too old", ticket, age)


class AcknowledgementService:
    """Webhook handling, status lookup and cache maintenance"""

    def __init__(
        self,
        verifier: AcknowledgementVerifier,
        repository: AcknowledgementRepository,
        cache: TTLCache
    ):
        self.verifier = verifier
        self.repository = repository
        self.cache = cache

    async def record(
        self,
        customer_email: str,
        message_id: Optional[str] = None,
        email_timestamp: Optional[Timestamp] = None
    ) -> VerificationResult:
        """
        Verify an acknowledgement and, if it checks out, persist and cache it
        """
        result = await self.verifier.verify(customer_email, email_timestamp)
        if not result.verified:
            return result

        ack = Acknowledgement(
            customer_email=customer_email,
            ticket_key=result.ticket.key,
            message_id=message_id,
            email_timestamp=(
                datetime.fromtimestamp(to_epoch_ms(email_timestamp) / 1000, tz=timezone.utc)
                if email_timestamp is not None else None
            ),
            acknowledged=True,
            verified=True,
        )

        self.cache.set(customer_email, {
            "ticketId": result.ticket.key,
            "messageId": message_id,
            "acknowledged": True,
            "verified": True,
            "latestTicket": result.ticket.model_dump(mode="json"),
        })

        try:
            await self.repository.insert_acknowledgement_async(ack)
        except StoreError as e:
            logger.error(f"Acknowledgement for {result.ticket.key} cached but not persisted: {e}")

        logger.info(
            f"Auto-acknowledgement for {customer_email}: "
            f"\"We received your request. Your ticket number is {result.ticket.key}.\""
        )
        return result

    async def status(self, customer_email: str) -> Optional[Dict[str, Any]]:
        """Latest verified acknowledgement: cache first, then Supabase"""
        cached = self.cache.get(customer_email)
        if cached and cached.get("acknowledged") and cached.get("verified"):
            return cached

        stored = await self.repository.get_latest_acknowledgement_async(customer_email)
        if stored is None or not (stored.acknowledged and stored.verified):
            return None

        data = {
            "ticketId": stored.ticket_key,
            "messageId": stored.message_id,
            "acknowledged": True,
            "verified": True,
            "latestTicket": None,
        }
        self.cache.set(customer_email, data)
        return data

    def clear(self, customer_email: str) -> bool:
        return self.cache.delete(customer_email)
