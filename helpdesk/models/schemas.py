"""
Pydantic models for the Helpdesk Portal

This module contains the domain types shared by the Jira client, the Supabase
repositories and the API routes:
- Display categories and the other closed vocabularies
- Jira-side records (tickets, transitions, comments, attachments)
- Supabase rows (category overrides, chat messages, acknowledgements,
  pending tickets)
- Request/response bodies for the HTTP surface (camelCase on the wire)
"""
from datetime import datetime
from enum import Enum
from typing import Optional, List, Literal, Union

from pydantic import BaseModel, Field, ConfigDict

from helpdesk.utils.validators import extract_from_email, normalize_email


# ============================================================================
# Enums
# ============================================================================

class Category(str, Enum):
    """Display category shown to customers, distinct from the Jira status"""
    IN_PROGRESS = "In Progress"
    PENDING_REPLY = "Pending Reply"
    RESOLVED = "Resolved"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Category"]:
        """
        Parse a stored category value.

        Older rows were written as "In Progression"; those read back as
        IN_PROGRESS. Unknown values return None.
        """
        if isinstance(value, cls):
            return value
        if not value or not isinstance(value, str):
            return None
        cleaned = value.strip().lower()
        if cleaned == "in progression":
            return cls.IN_PROGRESS
        for member in cls:
            if member.value.lower() == cleaned:
                return member
        return None


class ChatRole(str, Enum):
    """Who wrote a chat message"""
    USER = "user"
    SUPPORT = "support"


class PendingStatus(str, Enum):
    """Lifecycle of a provisional ticket record"""
    PENDING = "pending"
    CREATED = "created"
    FAILED = "failed"


# ============================================================================
# Jira Models
# ============================================================================

class AttachmentInfo(BaseModel):
    """Attachment metadata as listed on an issue"""
    id: str
    filename: str
    size: int = 0
    mime_type: Optional[str] = None
    content_url: Optional[str] = None


class AttachmentContent(BaseModel):
    """Downloaded attachment body"""
    filename: str
    content_type: str = "application/octet-stream"
    data: bytes


class Ticket(BaseModel):
    """
    Jira issue as seen by the portal.

    Attributes:
        key: Tracker-assigned issue key (e.g. HELP-42)
        status: Free-text workflow state name owned by Jira
        status_category: Jira's own status category (To Do / In Progress / Done)
        reporter_email: Native reporter, usually the shared service account
        description: Plain-text description (ADF flattened)
    """
    model_config = ConfigDict(from_attributes=True)

    id: str = ""
    key: str
    summary: str = ""
    status: str = ""
    status_category: Optional[str] = None
    created: Optional[datetime] = None
    updated: Optional[datetime] = None
    reporter_email: Optional[str] = None
    assignee_email: Optional[str] = None
    description: str = ""
    priority: Optional[str] = None
    issue_type: Optional[str] = None
    attachments: List[AttachmentInfo] = Field(default_factory=list)

    @property
    def customer_email(self) -> Optional[str]:
        """Address from the "From:" marker, falling back to the reporter"""
        return extract_from_email(self.description) or (
            normalize_email(self.reporter_email) or None
        )


class Transition(BaseModel):
    """Workflow transition available from an issue's current state"""
    id: str
    name: str
    to_name: str = ""

    def matches(self, target: str) -> bool:
        wanted = target.strip().lower()
        return self.name.strip().lower() == wanted or self.to_name.strip().lower() == wanted


class Comment(BaseModel):
    """Jira comment flattened to plain text"""
    id: str
    author_email: Optional[str] = None
    author_name: Optional[str] = None
    body: str = ""
    created: Optional[datetime] = None


# ============================================================================
# Database Models (matching Supabase tables)
# ============================================================================

class CategoryOverride(BaseModel):
    """
    Row in `ticket_categories`. At most one per ticket_key.

    When present it is the source of truth for the display category.
    """
    model_config = ConfigDict(from_attributes=True)

    ticket_key: str = Field(..., min_length=1)
    category: Category
    updated_at: Optional[datetime] = None


class ChatMessage(BaseModel):
    """Row in `chat_messages`"""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[Union[int, str]] = None
    ticket_key: str
    user_email: str
    message: str
    role: ChatRole
    created_at: Optional[datetime] = None


class Acknowledgement(BaseModel):
    """Row in `acknowledgements`: a verified auto-reply/ticket correlation"""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[Union[int, str]] = None
    customer_email: str
    ticket_key: str
    message_id: Optional[str] = None
    email_timestamp: Optional[datetime] = None
    acknowledged: bool = True
    verified: bool = False
    created_at: Optional[datetime] = None


class PendingTicket(BaseModel):
    """Row in `pending_tickets`: provisional record awaiting Jira creation"""
    model_config = ConfigDict(from_attributes=True)

    id: Union[int, str]
    user_email: str
    status: PendingStatus = PendingStatus.PENDING
    email_timestamp: int = Field(..., description="Epoch milliseconds of the email send")
    ticket_key: Optional[str] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None


# ============================================================================
# API Models
# ============================================================================

class ApiModel(BaseModel):
    """Wire models accept and emit camelCase aliases"""
    model_config = ConfigDict(populate_by_name=True)


class SyncCategoryRequest(ApiModel):
    ticket_key: str = Field(..., min_length=1, alias="ticketKey")
    category: str = Field(..., min_length=1)


class CategoryUpsertRequest(ApiModel):
    ticket_key: str = Field(..., min_length=1, alias="ticketKey")
    category: str = Field(..., min_length=1)
    sync_to_jira: bool = Field(False, alias="syncToJira")


class BulkResolveRequest(ApiModel):
    user_email: str = Field(..., min_length=1, alias="userEmail")


class PendingSyncRequest(ApiModel):
    user_email: str = Field(..., min_length=1, alias="userEmail")


class StatusUpdateRequest(ApiModel):
    status: str = Field(..., min_length=1)


class ChatMessageCreate(ApiModel):
    ticket_key: str = Field(..., min_length=1, alias="ticketKey")
    user_email: str = Field(..., min_length=1, alias="userEmail")
    message: str = Field(..., min_length=1)
    role: ChatRole


class VerifyAcknowledgementRequest(ApiModel):
    ticket_id: str = Field(..., min_length=1, alias="ticketId")
    customer_email: str = Field(..., min_length=1, alias="customerEmail")
    submission_timestamp: int = Field(..., alias="submissionTimestamp",
                                      description="Epoch milliseconds")


class AcknowledgementWebhook(ApiModel):
    customer_email: Optional[str] = Field(None, alias="customerEmail")
    ticket_id: Optional[str] = Field(None, alias="ticketId")
    message_id: Optional[str] = Field(None, alias="messageId")
    status: Optional[str] = None
    email_timestamp: Optional[Union[int, str]] = Field(None, alias="emailTimestamp")


class AcknowledgementClear(ApiModel):
    email: str = Field(..., min_length=1)


class PendingTicketCreate(ApiModel):
    user_email: str = Field(..., min_length=1, alias="userEmail")
    email_timestamp: Optional[int] = Field(None, alias="emailTimestamp")


class BulkResolveResult(BaseModel):
    """Outcome of a bulk resolve run"""
    resolved: int = 0
    failed: int = 0
    errors: List[str] = Field(default_factory=list)


class CategorySyncResult(BaseModel):
    """Outcome of pushing stored categories to Jira"""
    updated: int = 0
    failed: int = 0
    total: int = 0
    errors: List[str] = Field(default_factory=list)


class ConversationEntry(BaseModel):
    """One item of the merged chat/comment thread"""
    id: str
    source: Literal["chat", "jira"]
    role: ChatRole
    email: Optional[str] = None
    message: str
    timestamp: Optional[datetime] = None
