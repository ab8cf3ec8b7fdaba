"""
Unit tests for input validation helpers and category parsing
"""
from helpdesk.models.schemas import Category, Ticket
from helpdesk.utils.validators import (
    extract_from_email,
    normalize_email,
    sanitize_input,
    validate_email,
    validate_ticket_key,
)


class TestExtractFromEmail:

    def test_plain_marker(self):
        """Test a plain From marker"""
        assert extract_from_email("From: Jane.Doe@Example.com\nHello") == "jane.doe@example.com"

    def test_angle_brackets_and_case(self):
        """Test angle brackets and mixed case"""
        assert extract_from_email("FROM:<user@example.org> sent this") == "user@example.org"

    def test_marker_glued_to_next_word(self):
        """Test a marker glued to the next word"""
        # Mail pipeline sometimes drops the newline before "Description"
        text = "From: user@example.comDescription: printer is broken"
        assert extract_from_email(text) == "user@example.com"

    def test_no_marker(self):
        """Test descriptions without a marker"""
        assert extract_from_email("Contact me at user@example.com") is None
        assert extract_from_email("") is None
        assert extract_from_email(None) is None


class TestTicketCustomerEmail:

    def test_marker_wins_over_reporter(self):
        """Test the marker beats the reporter email"""
        ticket = Ticket(key="HELP-1", reporter_email="portal@example.com",
                        description="From: user@example.com")
        assert ticket.customer_email == "user@example.com"

    def test_reporter_fallback(self):
        """Test fallback to the reporter email"""
        ticket = Ticket(key="HELP-1", reporter_email=" Someone@Example.com ")
        assert ticket.customer_email == "someone@example.com"

    def test_nothing_known(self):
        """Test no attribution is possible"""
        assert Ticket(key="HELP-1").customer_email is None


class TestCategoryParse:

    def test_display_values(self):
        """Test display values parse to categories"""
        assert Category.parse("Resolved") == Category.RESOLVED
        assert Category.parse(" pending reply ") == Category.PENDING_REPLY

    def test_legacy_spelling(self):
        """Test the legacy In Progression spelling"""
        assert Category.parse("In Progression") == Category.IN_PROGRESS

    def test_invalid(self):
        """Test unknown category strings"""
        assert Category.parse("Closed") is None
        assert Category.parse("") is None
        assert Category.parse(None) is None


def test_validate_ticket_key():
    """Test ticket key validation"""
    assert validate_ticket_key("HELP-42")
    assert not validate_ticket_key("help-42")
    assert not validate_ticket_key("HELP")
    assert not validate_ticket_key("")


def test_validate_email():
    """Test email validation"""
    assert validate_email("user@example.com")
    assert not validate_email("user@")
    assert not validate_email(None)


def test_normalize_email():
    """Test email normalization"""
    assert normalize_email("  User@Example.COM ") == "user@example.com"
    assert normalize_email(None) == ""


def test_sanitize_input():
    """Test input sanitization"""
    assert sanitize_input("  hi\x00 there  ") == "hi there"
    assert sanitize_input("abcdef", max_length=3) == "abc"
