"""
Repositories package for database operations

Provides repository classes for CRUD operations on:
- ticket_categories table (CategoryRepository)
- chat_messages table (ChatMessageRepository)
- acknowledgements table (AcknowledgementRepository)
- pending_tickets table (PendingTicketRepository)
"""
from helpdesk.repositories.category_repository import CategoryRepository
from helpdesk.repositories.chat_repository import ChatMessageRepository
from helpdesk.repositories.acknowledgement_repository import AcknowledgementRepository
from helpdesk.repositories.pending_ticket_repository import PendingTicketRepository

__all__ = [
    "CategoryRepository",
    "ChatMessageRepository",
    "AcknowledgementRepository",
    "PendingTicketRepository",
]
