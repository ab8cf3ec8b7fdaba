"""
Ticket-related API routes

Jira reads with display categories attached, single-ticket status changes,
attachment download and the master-only bulk resolve jobs.
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.responses import JSONResponse

from helpdesk.dependencies import (
    get_category_sync,
    get_jira_client,
    get_reconciliation_service,
)
from helpdesk.exceptions import TrackerError, TransitionUnavailable
from helpdesk.models.schemas import BulkResolveRequest, StatusUpdateRequest, Ticket
from helpdesk.services.category_sync import CategorySyncService
from helpdesk.services.jira import JiraClient
from helpdesk.services.reconciliation import BulkReconciliationService
from helpdesk.utils.logger import get_logger

router = APIRouter(prefix="/api", tags=["tickets"])
logger = get_logger(__name__)


def _ticket_payload(ticket: Ticket, category, source: Optional[str] = None) -> Dict[str, Any]:
    payload = ticket.model_dump(mode="json")
    payload["customer_email"] = ticket.customer_email
    payload["category"] = category.value
    if source:
        payload["categorySource"] = source
    return payload


# ============================================================================
# Reads
# ============================================================================

@router.get("/jira/tickets")
async def list_user_tickets(
    email: str = Query(..., min_length=1),
    limit: int = Query(100, ge=1, le=1000),
    sync: CategorySyncService = Depends(get_category_sync)
):
    """
    Tickets attributed to `email` (all tickets for the master account)

    Each ticket carries its display category: the stored override when
    present, otherwise the one derived from the Jira status.
    """
    tickets = await sync.jira.get_tickets_by_user(email, limit=limit)
    overrides = {
        row.ticket_key: row.category
        for row in await sync.categories.list_categories_async()
    }
    return {
        "tickets": [
            _ticket_payload(
                ticket,
                sync.effective_category(ticket, overrides),
                "override" if ticket.key in overrides else "derived",
            )
            for ticket in tickets
        ],
        "total": len(tickets),
    }


@router.get("/jira/ticket/{ticket_key}")
async def get_ticket(
    ticket_key: str,
    sync: CategorySyncService = Depends(get_category_sync)
):
    ticket = await sync.jira.get_ticket(ticket_key)
    if ticket is None:
        raise HTTPException(status_code=404, detail=f"Ticket {ticket_key} not found")

    category, source = await sync.get_display_category(ticket_key, ticket=ticket)
    return _ticket_payload(ticket, category, source)


@router.get("/jira/latest-ticket")
async def get_latest_ticket(
    user_email: str = Query(..., alias="userEmail", min_length=1),
    jira: JiraClient = Depends(get_jira_client)
):
    """Most recently created ticket attributed to the user"""
    ticket = await jira.get_latest_ticket_by_user(user_email)
    if ticket is None:
        raise HTTPException(status_code=404, detail=f"No tickets found for {user_email}")
    return {"ticket": ticket.model_dump(mode="json"), "ticketId": ticket.key}


@router.get("/jira/attachment/{attachment_id}")
async def download_attachment(
    attachment_id: str,
    jira: JiraClient = Depends(get_jira_client)
):
    try:
        attachment = await jira.fetch_attachment(attachment_id)
    except TrackerError as e:
        if e.status_code == 404:
            raise HTTPException(status_code=404, detail=f"Attachment {attachment_id} not found")
        raise

    return Response(
        content=attachment.data,
        media_type=attachment.content_type,
        headers={"Content-Disposition": f'inline; filename="{attachment.filename}"'}
    )


# ============================================================================
# Single-ticket writes
# ============================================================================

@router.put("/jira/ticket/{ticket_key}/status")
async def update_ticket_status(
    ticket_key: str,
    request: StatusUpdateRequest,
    jira: JiraClient = Depends(get_jira_client)
):
    """Move the Jira issue to a workflow state by transition or status name"""
    try:
        await jira.transition(ticket_key, request.status)
    except TransitionUnavailable as e:
        logger.warning(str(e))
        return JSONResponse(
            status_code=400,
            content={
                "error": f"Transition to '{request.status}' not available",
                "availableTransitions": e.available,
            }
        )
    return {"success": True, "message": f"Ticket {ticket_key} moved to '{request.status}'"}


@router.post("/jira/ticket/{ticket_key}/resolve")
async def resolve_ticket(
    ticket_key: str,
    sync: CategorySyncService = Depends(get_category_sync)
):
    """
    Resolve button: Jira to Done and category to Resolved

    Succeeds when at least one of the two writes went through.
    """
    outcome = await sync.resolve_ticket(ticket_key)
    if not outcome["jira"] and not outcome["store"]:
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": f"Failed to resolve {ticket_key}", **outcome}
        )
    return {"success": True, "message": f"Ticket {ticket_key} resolved", **outcome}


# ============================================================================
# Bulk resolve (master account only)
# ============================================================================

@router.post("/jira/bulk-resolve")
async def bulk_resolve_pending(
    request: BulkResolveRequest,
    service: BulkReconciliationService = Depends(get_reconciliation_service)
):
    """Resolve every ticket whose display category is Pending Reply"""
    result = await service.bulk_resolve_pending(request.user_email)
    return {"success": True, **result.model_dump()}


@router.post("/tickets/bulk-resolve")
async def bulk_resolve_all(
    request: BulkResolveRequest,
    service: BulkReconciliationService = Depends(get_reconciliation_service)
):
    """Resolve every ticket in the project"""
    result = await service.bulk_resolve(request.user_email)
    return {"success": True, **result.model_dump()}
