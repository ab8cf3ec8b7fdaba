"""
Pending ticket routes

A pending record bridges the gap between the customer sending the ticket
email and Jira actually creating the issue.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from helpdesk.dependencies import get_pending_ticket_repository, get_pending_ticket_service
from helpdesk.models.schemas import PendingTicketCreate
from helpdesk.repositories.pending_ticket_repository import PendingTicketRepository
from helpdesk.services.pending_tickets import PendingTicketService
from helpdesk.utils.validators import validate_email

router = APIRouter(prefix="/api/pending-tickets", tags=["pending-tickets"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_pending_ticket(
    request: PendingTicketCreate,
    repository: PendingTicketRepository = Depends(get_pending_ticket_repository)
):
    if not validate_email(request.user_email):
        raise HTTPException(status_code=400, detail=f"Invalid email: {request.user_email}")

    pending = await repository.insert_pending_ticket_async(
        request.user_email, request.email_timestamp
    )
    return {"success": True, "pendingTicket": pending.model_dump(mode="json")}


@router.get("")
async def get_pending_tickets(
    pending_id: Optional[str] = Query(None, alias="id"),
    email: Optional[str] = Query(None),
    repository: PendingTicketRepository = Depends(get_pending_ticket_repository)
):
    """One record by `id`, or every record for `email` (newest first)"""
    if pending_id:
        pending = await repository.get_pending_ticket_async(pending_id)
        if pending is None:
            raise HTTPException(status_code=404, detail=f"Pending ticket {pending_id} not found")
        return {"pendingTicket": pending.model_dump(mode="json")}

    if email:
        records = await repository.list_pending_tickets_async(email)
        return {"pendingTickets": [p.model_dump(mode="json") for p in records]}

    raise HTTPException(status_code=400, detail="Either id or email is required")


@router.post("/{pending_id}/resolve")
async def resolve_pending_ticket(
    pending_id: str,
    max_attempts: int = Query(10, alias="maxAttempts", ge=1, le=60),
    interval: float = Query(3.0, ge=0, le=60),
    service: PendingTicketService = Depends(get_pending_ticket_service)
):
    """Poll Jira for the real ticket and settle the record"""
    pending = await service.resolve(pending_id, max_attempts=max_attempts, interval=interval)
    if pending is None:
        raise HTTPException(status_code=404, detail=f"Pending ticket {pending_id} not found")
    return {"pendingTicket": pending.model_dump(mode="json")}
