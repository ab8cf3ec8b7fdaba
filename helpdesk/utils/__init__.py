"""
Utility functions
"""
from helpdesk.utils.logger import setup_logger, get_logger
from helpdesk.utils.validators import (
    validate_ticket_key,
    validate_email,
    normalize_email,
    extract_from_email,
    sanitize_input
)

__all__ = [
    "setup_logger",
    "get_logger",
    "validate_ticket_key",
    "validate_email",
    "normalize_email",
    "extract_from_email",
    "sanitize_input",
]
