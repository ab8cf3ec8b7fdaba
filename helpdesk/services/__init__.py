"""
Business Logic Services
"""
from .jira import JiraClient
from .category_mapper import map_status_to_category
from .category_sync import CategorySyncService
from .transition_engine import MessageTransitionEngine
from .reconciliation import BulkReconciliationService
from .acknowledgement import AcknowledgementService, AcknowledgementVerifier
from .pending_tickets import PendingTicketService

__all__ = [
    "JiraClient",
    "map_status_to_category",
    "CategorySyncService",
    "MessageTransitionEngine",
    "BulkReconciliationService",
    "AcknowledgementService",
    "AcknowledgementVerifier",
    "PendingTicketService",
]
