"""
Unit tests for the Jira status -> display category mapping
"""
import pytest

from helpdesk.models.schemas import Category
from helpdesk.services.category_mapper import (
    DEFAULT_CATEGORY,
    STATUS_RULES,
    first_matching_rule,
    map_status_to_category,
)


class TestMapStatusToCategory:

    @pytest.mark.parametrize("status, expected", [
        ("In Progress", Category.IN_PROGRESS),
        ("In Development", Category.IN_PROGRESS),
        ("Code Review", Category.IN_PROGRESS),
        ("Done", Category.RESOLVED),
        ("Resolved", Category.RESOLVED),
        ("Closed", Category.RESOLVED),
        ("Waiting for customer", Category.PENDING_REPLY),
        ("Pending", Category.PENDING_REPLY),
        ("Awaiting Feedback", Category.PENDING_REPLY),
    ])
    def test_known_statuses(self, status, expected):
        """Test common Jira statuses map to the expected category"""
        assert map_status_to_category(status) == expected

    @pytest.mark.parametrize("status", ["", None, "To Do", "Open", "Backlog", 42, ["done"]])
    def test_unknown_input_falls_back_to_default(self, status):
        """Test unmatched or empty statuses default to In Progress"""
        assert map_status_to_category(status) == DEFAULT_CATEGORY == Category.IN_PROGRESS

    def test_case_insensitive(self):
        """Test matching ignores case"""
        assert map_status_to_category("DONE") == Category.RESOLVED
        assert map_status_to_category("pEnDiNg") == Category.PENDING_REPLY

    def test_progress_keyword_beats_pending_keyword(self):
        """Test rule order when progress and pending both appear"""
        assert map_status_to_category("In Review - Pending feedback") == Category.IN_PROGRESS

    def test_resolved_keyword_beats_pending_keyword(self):
        """Test rule order when resolved and pending both appear"""
        assert map_status_to_category("Closed - waiting for archive") == Category.RESOLVED

    def test_result_is_always_a_category(self):
        """Test the mapper never returns None"""
        for status in ["", None, "x", "Done", "in progress", "pending", "???", " "]:
            assert map_status_to_category(status) in set(Category)


class TestRuleTable:

    def test_rule_order(self):
        """Test the rules are evaluated in declared order"""
        assert [rule.category for rule in STATUS_RULES] == [
            Category.IN_PROGRESS,
            Category.RESOLVED,
            Category.PENDING_REPLY,
        ]

    def test_no_rule_for_unmatched_status(self):
        """Test no rule is reported for an unmatched status"""
        assert first_matching_rule("To Do") is None
        assert first_matching_rule(None) is None

    def test_first_matching_rule_returns_rule(self):
        """Test the matching rule itself is exposed"""
        rule = first_matching_rule("Waiting for support")
        assert rule is STATUS_RULES[2]
