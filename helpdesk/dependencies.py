"""
FastAPI dependency providers

Every request gets its collaborators through these functions so tests can
swap them with `app.dependency_overrides`. Missing credentials surface as
ConfigurationError (HTTP 500) when a route first needs them.
"""
from fastapi import Depends, Request

from helpdesk.config import Settings, get_settings
from helpdesk.repositories import (
    AcknowledgementRepository,
    CategoryRepository,
    ChatMessageRepository,
    PendingTicketRepository,
)
from helpdesk.services.ack_cache import TTLCache
from helpdesk.services.acknowledgement import AcknowledgementService, AcknowledgementVerifier
from helpdesk.services.category_sync import CategorySyncService
from helpdesk.services.jira import JiraClient
from helpdesk.services.pending_tickets import PendingTicketService
from helpdesk.services.reconciliation import BulkReconciliationService
from helpdesk.services.transition_engine import MessageTransitionEngine


def get_jira_client(settings: Settings = Depends(get_settings)) -> JiraClient:
    settings.require_jira()
    return JiraClient(settings)


def get_category_repository(settings: Settings = Depends(get_settings)) -> CategoryRepository:
    return CategoryRepository(settings=settings)


def get_chat_repository(settings: Settings = Depends(get_settings)) -> ChatMessageRepository:
    return ChatMessageRepository(settings=settings)


def get_acknowledgement_repository(settings: Settings = Depends(get_settings)) -> AcknowledgementRepository:
    return AcknowledgementRepository(settings=settings)


def get_pending_ticket_repository(settings: Settings = Depends(get_settings)) -> PendingTicketRepository:
    return PendingTicketRepository(settings=settings)


def get_acknowledgement_cache(request: Request) -> TTLCache:
    """Process-owned cache created at startup"""
    return request.app.state.acknowledgement_cache


def get_category_sync(
    jira: JiraClient = Depends(get_jira_client),
    categories: CategoryRepository = Depends(get_category_repository)
) -> CategorySyncService:
    return CategorySyncService(jira, categories)


def get_transition_engine(
    sync: CategorySyncService = Depends(get_category_sync),
    settings: Settings = Depends(get_settings)
) -> MessageTransitionEngine:
    return MessageTransitionEngine(sync, settings)


def get_reconciliation_service(
    sync: CategorySyncService = Depends(get_category_sync),
    settings: Settings = Depends(get_settings)
) -> BulkReconciliationService:
    return BulkReconciliationService(sync, settings)


def get_acknowledgement_verifier(jira: JiraClient = Depends(get_jira_client)) -> AcknowledgementVerifier:
    return AcknowledgementVerifier(jira)


def get_acknowledgement_service(
    verifier: AcknowledgementVerifier = Depends(get_acknowledgement_verifier),
    repository: AcknowledgementRepository = Depends(get_acknowledgement_repository),
    cache: TTLCache = Depends(get_acknowledgement_cache)
) -> AcknowledgementService:
    return AcknowledgementService(verifier, repository, cache)


def get_pending_ticket_service(
    repository: PendingTicketRepository = Depends(get_pending_ticket_repository),
    verifier: AcknowledgementVerifier = Depends(get_acknowledgement_verifier)
) -> PendingTicketService:
    return PendingTicketService(repository, verifier)
