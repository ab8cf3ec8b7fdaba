"""
Jira status -> display category mapping

Workflow vocabularies differ between projects, so statuses are matched on
keywords rather than exact names. Rules are evaluated in order and the first
match wins; anything unmatched falls back to IN_PROGRESS.
"""
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from helpdesk.models.schemas import Category


@dataclass(frozen=True)
class KeywordRule:
    """Maps any status containing one of `keywords` to `category`"""
    category: Category
    keywords: Tuple[str, ...]

    def matches(self, status: str) -> bool:
        return any(keyword in status for keyword in self.keywords)


STATUS_RULES: Tuple[KeywordRule, ...] = (
    KeywordRule(Category.IN_PROGRESS, ("progress", "development", "review")),
    KeywordRule(Category.RESOLVED, ("done", "resolved", "closed")),
    KeywordRule(Category.PENDING_REPLY, ("waiting", "pending", "feedback")),
)

DEFAULT_CATEGORY = Category.IN_PROGRESS


def first_matching_rule(status: Any) -> Optional[KeywordRule]:
    """Return the first rule matching the status, or None"""
    if not isinstance(status, str) or not status:
        return None
    lowered = status.lower()
    for rule in STATUS_RULES:
        if rule.matches(lowered):
            return rule
    return None


def map_status_to_category(status: Any) -> Category:
    """
    Map a Jira status name to a display category

    Total: empty, None or non-string input returns the default.

    Examples:
        >>> map_status_to_category("In Review - Pending feedback")
        <Category.IN_PROGRESS: 'In Progress'>
        >>> map_status_to_category("Waiting for customer")
        <Category.PENDING_REPLY: 'Pending Reply'>
    """
    rule = first_matching_rule(status)
    return rule.category if rule else DEFAULT_CATEGORY
