"""
Auto-acknowledgement routes

The mail pipeline reports "acknowledgement sent" through the webhook; the
portal front-end polls the status endpoint and asks for verification before
redirecting the customer to their ticket page.
"""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from helpdesk.dependencies import get_acknowledgement_service, get_acknowledgement_verifier
from helpdesk.models.schemas import (
    AcknowledgementClear,
    AcknowledgementWebhook,
    VerifyAcknowledgementRequest,
)
from helpdesk.services.acknowledgement import (
    ACKNOWLEDGEMENT_SENT,
    AcknowledgementService,
    AcknowledgementVerifier,
    check_submission_window,
)
from helpdesk.utils.logger import get_logger

router = APIRouter(prefix="/api", tags=["acknowledgement"])
logger = get_logger(__name__)


def _bad_request(message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"success": False, "verified": False, "message": message, **extra}
    )


@router.post("/verify-acknowledgement")
async def verify_acknowledgement(
    request: VerifyAcknowledgementRequest,
    verifier: AcknowledgementVerifier = Depends(get_acknowledgement_verifier)
):
    """
    Gate the redirect to the ticket page

    400 before the one-minute wait is over (with `timeRemaining` in seconds)
    or once the ten-minute link has expired. Inside the window the latest
    ticket is correlated with the submission time; a mismatch is a normal
    `verified: false` answer.
    """
    window = check_submission_window(request.submission_timestamp)
    if not window.allowed:
        if window.expired:
            return _bad_request(window.reason, expired=True)
        return _bad_request(window.reason, timeRemaining=window.time_remaining)

    result = await verifier.verify(request.customer_email, request.submission_timestamp)
    if not result.verified:
        logger.info(f"Acknowledgement for {request.customer_email} not verified: {result.reason}")
        return {"verified": False, "ticketId": request.ticket_id, "message": result.reason}

    return {
        "verified": True,
        "ticketId": result.ticket.key,
        "message": window.reason,
        "redirectUrl": f"/tickets/{result.ticket.key}",
    }


@router.get("/acknowledgement/status")
async def acknowledgement_status(
    email: str = Query(..., min_length=1),
    service: AcknowledgementService = Depends(get_acknowledgement_service)
):
    data = await service.status(email)
    if data is None:
        return {"acknowledged": False}
    return data


@router.post("/acknowledgement/webhook")
async def acknowledgement_webhook(
    payload: AcknowledgementWebhook,
    service: AcknowledgementService = Depends(get_acknowledgement_service)
):
    """Record an acknowledgement once it matches a real, recent ticket"""
    if not payload.customer_email or payload.status != ACKNOWLEDGEMENT_SENT:
        return _bad_request("Invalid webhook payload")

    try:
        result = await service.record(
            payload.customer_email,
            message_id=payload.message_id,
            email_timestamp=payload.email_timestamp,
        )
    except ValueError as e:
        return _bad_request(f"Invalid emailTimestamp: {e}")

    if not result.verified:
        logger.info(f"Webhook for {payload.customer_email} not verified: {result.reason}")
        return _bad_request(result.reason)

    return {
        "success": True,
        "verified": True,
        "ticketId": result.ticket.key,
        "message": "Acknowledgement verified and recorded",
    }


@router.post("/acknowledgement/clear")
async def clear_acknowledgement(
    request: AcknowledgementClear,
    service: AcknowledgementService = Depends(get_acknowledgement_service)
):
    return {"success": True, "cleared": service.clear(request.email)}
