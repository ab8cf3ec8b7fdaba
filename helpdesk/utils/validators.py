"""
Input validation utilities
"""
import re
from typing import Optional

# TLD limited to lowercase so a glued-on word like "Description" is not swallowed
_EMAIL = r"([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-z]{2,6})(?=[A-Z]|\s|$|[^a-zA-Z0-9])"

_FROM_MARKER = re.compile(r"(?i:from)\s*:\s*<?" + _EMAIL)

_TICKET_KEY = re.compile(r"^[A-Z][A-Z0-9_]+-\d+$")


def validate_ticket_key(ticket_key: str) -> bool:
    """
    Validate Jira issue key format (e.g. HELP-42)

    Args:
        ticket_key: Issue key to validate

    Returns:
        True if valid format
    """
    return bool(ticket_key) and _TICKET_KEY.match(ticket_key) is not None


def validate_email(email: str) -> bool:
    """
    Validate email format

    Args:
        email: Email address to validate

    Returns:
        True if valid email format
    """
    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return re.match(pattern, email or "") is not None


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def extract_from_email(description: Optional[str]) -> Optional[str]:
    """
    Pull the customer address out of a "From: <email>" marker.

    The inbound mail pipeline writes this marker into the issue description
    because the Jira reporter is the shared service account.

    Args:
        description: Plain-text issue description

    Returns:
        Lowercased email or None when no marker is present
    """
    if not description:
        return None

    match = _FROM_MARKER.search(description)
    if match:
        return match.group(1).strip().lower()

    return None


def sanitize_input(text: str, max_length: int = 10000) -> str:
    """
    Sanitize user input

    Args:
        text: Input text to sanitize
        max_length: Maximum allowed length

    Returns:
        Sanitized text
    """
    # Remove null bytes
    text = text.replace('\x00', '')

    # Truncate to max length
    if len(text) > max_length:
        text = text[:max_length]

    return text.strip()
