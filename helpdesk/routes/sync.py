"""
Synchronization API Routes

Provides endpoints for pushing display categories to Jira:
- Bulk push of every stored category
- Single-ticket push
- Pending Reply tickets back to In Progress
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from helpdesk.dependencies import get_category_sync, get_reconciliation_service
from helpdesk.models.schemas import Category, PendingSyncRequest, SyncCategoryRequest
from helpdesk.services.category_sync import CategorySyncService
from helpdesk.services.reconciliation import BulkReconciliationService
from helpdesk.utils.logger import get_logger

router = APIRouter(prefix="/api", tags=["sync"])
logger = get_logger(__name__)


@router.post("/sync-jira-status")
async def sync_jira_status(
    service: BulkReconciliationService = Depends(get_reconciliation_service)
):
    """
    Push every stored category to Jira

    Returns {synced, failed, total}; per-ticket failures do not fail the call.
    """
    logger.info("===== JIRA STATUS SYNC START =====")
    result = await service.bulk_sync_all_categories()
    logger.info(f"===== JIRA STATUS SYNC END ===== synced={result.updated} failed={result.failed}")

    if result.total == 0:
        return {"message": "No categories to sync", "synced": 0, "failed": 0, "total": 0}

    return {
        "message": "Sync completed",
        "synced": result.updated,
        "failed": result.failed,
        "total": result.total,
        "errors": result.errors,
    }


@router.post("/sync-category-to-jira")
async def sync_category_to_jira(
    service: BulkReconciliationService = Depends(get_reconciliation_service)
):
    """Same job as /sync-jira-status, reported as {updated, failed, total}"""
    result = await service.bulk_sync_all_categories()
    return {
        "success": True,
        "message": f"Synced {result.updated} tickets successfully",
        "updated": result.updated,
        "failed": result.failed,
        "total": result.total,
    }


@router.post("/jira/sync-category")
async def sync_single_category(
    request: SyncCategoryRequest,
    sync: CategorySyncService = Depends(get_category_sync)
):
    """Push one ticket's category to Jira"""
    category = Category.parse(request.category)
    if category is None:
        return JSONResponse(
            status_code=400,
            content={"error": f"Invalid category '{request.category}'"}
        )

    logger.info(f"Syncing ticket {request.ticket_key} with category '{category.value}'")
    if await sync.sync_category_to_tracker(request.ticket_key, category):
        return {"success": True, "message": "Ticket synced successfully"}

    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Failed to sync ticket"}
    )


@router.post("/sync-pending-tickets")
async def sync_pending_tickets(
    request: PendingSyncRequest,
    service: BulkReconciliationService = Depends(get_reconciliation_service)
):
    """Move Jira status of every Pending Reply ticket to In Progress"""
    logger.info(f"Syncing Pending Reply tickets (requested by {request.user_email})")
    result = await service.sync_pending_to_in_progress()
    return {
        "message": "Sync completed" if result.total else "No pending tickets to sync",
        "updated": result.updated,
        "total": result.total,
        "errors": result.errors,
    }
