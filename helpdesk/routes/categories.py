"""
Display category endpoints (ticket_categories table)
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from helpdesk.dependencies import get_category_repository, get_category_sync
from helpdesk.models.schemas import Category, CategoryUpsertRequest
from helpdesk.repositories.category_repository import CategoryRepository
from helpdesk.services.category_sync import CategorySyncService
from helpdesk.utils.logger import get_logger
from helpdesk.utils.validators import validate_ticket_key

router = APIRouter(prefix="/api/ticket-categories", tags=["categories"])
logger = get_logger(__name__)


def _invalid_category(value: str) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "error": f"Invalid category '{value}'",
            "validCategories": [c.value for c in Category],
        }
    )


@router.get("")
async def list_categories(
    category: Optional[str] = Query(None),
    repository: CategoryRepository = Depends(get_category_repository)
):
    """All stored overrides, optionally filtered by category"""
    wanted = None
    if category is not None:
        wanted = Category.parse(category)
        if wanted is None:
            return _invalid_category(category)

    rows = await repository.list_categories_async(wanted)
    return {
        "categories": [row.model_dump(mode="json") for row in rows],
        "total": len(rows),
    }


@router.get("/{ticket_key}")
async def get_category(
    ticket_key: str,
    sync: CategorySyncService = Depends(get_category_sync)
):
    """Override when present, otherwise derived from the Jira status"""
    found = await sync.get_display_category(ticket_key)
    if found is None:
        raise HTTPException(status_code=404, detail=f"Ticket {ticket_key} not found")

    category, source = found
    return {"ticketKey": ticket_key, "category": category.value, "source": source}


@router.post("")
async def upsert_category(
    request: CategoryUpsertRequest,
    sync: CategorySyncService = Depends(get_category_sync)
):
    """
    Insert or replace the override row

    With `syncToJira` the Jira status is nudged as well; that push is
    best-effort and reported in `jiraSynced`.
    """
    if not validate_ticket_key(request.ticket_key):
        raise HTTPException(status_code=400, detail=f"Invalid ticket key: {request.ticket_key}")

    category = Category.parse(request.category)
    if category is None:
        return _invalid_category(request.category)

    row = await sync.upsert_category(request.ticket_key, category)
    logger.info(f"Category for {request.ticket_key} set to '{category.value}'")

    response = {"success": True, "category": row.model_dump(mode="json")}
    if request.sync_to_jira:
        response["jiraSynced"] = await sync.sync_category_to_tracker(request.ticket_key, category)
    return response
