"""
Conversation merge

Chat messages live in Supabase and are mirrored into Jira comments. The
ticket page shows both sources as one thread; a comment that repeats a
stored message (same sender, same text ignoring case and surrounding
whitespace) is hidden from the merged view but never deleted.
"""
import re
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set, Tuple

from helpdesk.models.schemas import ChatMessage, ChatRole, Comment, ConversationEntry
from helpdesk.utils.validators import normalize_email

# Mirrored comments are posted by the service account as "<email>: <text>"
_MIRROR_PREFIX = re.compile(r"^\s*([^\s:@]+@[^\s:]+):\s?(.*)$", re.DOTALL)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def format_mirror_comment(user_email: str, message: str) -> str:
    return f"{user_email}: {message}"


def dedup_key(sender_email: Optional[str], text: str) -> Tuple[str, str]:
    return normalize_email(sender_email), (text or "").strip().lower()


def comment_sender(comment: Comment, service_account_email: Optional[str]) -> Tuple[Optional[str], str, bool]:
    """
    Sender, text and whether the comment is a portal mirror

    Mirror comments are unwrapped to the original sender and text.
    """
    author = normalize_email(comment.author_email)
    if author and author == normalize_email(service_account_email):
        match = _MIRROR_PREFIX.match(comment.body)
        if match:
            return normalize_email(match.group(1)), match.group(2), True
    return comment.author_email, comment.body, False


def _sort_key(entry: ConversationEntry) -> datetime:
    stamp = entry.timestamp
    if stamp is None:
        return _EPOCH
    if stamp.tzinfo is None:
        return stamp.replace(tzinfo=timezone.utc)
    return stamp


def merge_conversation(
    messages: Iterable[ChatMessage],
    comments: Iterable[Comment],
    service_account_email: Optional[str] = None,
    master_email: Optional[str] = None
) -> List[ConversationEntry]:
    """
    Merge stored chat messages with Jira comments, oldest first

    Args:
        messages: Rows from chat_messages
        comments: Comments from Jira
        service_account_email: Jira account used for mirroring
        master_email: Support account; its comments are shown as support

    Returns:
        Merged, deduplicated thread
    """
    entries: List[ConversationEntry] = []
    seen: Set[Tuple[str, str]] = set()

    for message in messages:
        seen.add(dedup_key(message.user_email, message.message))
        entries.append(ConversationEntry(
            id=f"chat-{message.id}",
            source="chat",
            role=message.role,
            email=message.user_email,
            message=message.message,
            timestamp=message.created_at,
        ))

    master = normalize_email(master_email)
    for comment in comments:
        sender, text, mirrored = comment_sender(comment, service_account_email)
        if dedup_key(sender, text) in seen:
            continue

        # Comments typed directly in Jira come from agents
        is_support = not mirrored or normalize_email(sender) == master
        entries.append(ConversationEntry(
            id=f"jira-{comment.id}",
            source="jira",
            role=ChatRole.SUPPORT if is_support else ChatRole.USER,
            email=sender,
            message=text,
            timestamp=comment.created,
        ))

    entries.sort(key=_sort_key)
    return entries
