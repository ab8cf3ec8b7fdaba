"""
Pydantic models for the Helpdesk Portal
"""

from helpdesk.models.schemas import (
    # Enums
    Category,
    ChatRole,
    PendingStatus,

    # Jira Models
    AttachmentInfo,
    AttachmentContent,
    Ticket,
    Transition,
    Comment,

    # Database Models
    CategoryOverride,
    ChatMessage,
    Acknowledgement,
    PendingTicket,

    # API Models
    SyncCategoryRequest,
    CategoryUpsertRequest,
    BulkResolveRequest,
    PendingSyncRequest,
    StatusUpdateRequest,
    ChatMessageCreate,
    VerifyAcknowledgementRequest,
    AcknowledgementWebhook,
    AcknowledgementClear,
    PendingTicketCreate,
    BulkResolveResult,
    CategorySyncResult,
    ConversationEntry,
)

__all__ = [
    # Enums
    "Category",
    "ChatRole",
    "PendingStatus",

    # Jira Models
    "AttachmentInfo",
    "AttachmentContent",
    "Ticket",
    "Transition",
    "Comment",

    # Database Models
    "CategoryOverride",
    "ChatMessage",
    "Acknowledgement",
    "PendingTicket",

    # API Models
    "SyncCategoryRequest",
    "CategoryUpsertRequest",
    "BulkResolveRequest",
    "PendingSyncRequest",
    "StatusUpdateRequest",
    "ChatMessageCreate",
    "VerifyAcknowledgementRequest",
    "AcknowledgementWebhook",
    "AcknowledgementClear",
    "PendingTicketCreate",
    "BulkResolveResult",
    "CategorySyncResult",
    "ConversationEntry",
]
