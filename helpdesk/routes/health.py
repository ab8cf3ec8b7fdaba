"""
Health check endpoints

Provides two endpoints:
- GET /api/health - Basic liveness check
- GET /api/health/dependencies - Reachability of Jira and Supabase
"""
import asyncio
import time
from datetime import datetime, timezone
from typing import Dict, Optional

import httpx
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from helpdesk.config import Settings, get_settings
from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/health", tags=["health"])

APP_VERSION = "1.0.0"
APP_START_TIME = time.time()
CHECK_TIMEOUT_SECONDS = 5.0


class HealthResponse(BaseModel):
    """Basic health check response"""
    status: str = Field(..., description="Overall status: healthy, degraded, unhealthy")
    timestamp: datetime
    version: str
    uptime_seconds: float


class DependencyStatus(BaseModel):
    """Status of a single dependency"""
    name: str
    status: str
    latency_ms: Optional[float] = None
    error_message: Optional[str] = None


class DependencyHealth(BaseModel):
    overall_status: str
    dependencies: Dict[str, DependencyStatus]
    checked_at: datetime


async def _check_http(name: str, url: str, **kwargs) -> DependencyStatus:
    start = time.time()
    try:
        async with httpx.AsyncClient(timeout=CHECK_TIMEOUT_SECONDS) as client:
            response = await client.get(url, **kwargs)
            response.raise_for_status()
    except httpx.TimeoutException:
        logger.error(f"{name} health check timed out")
        return DependencyStatus(
            name=name,
            status="unhealthy",
            error_message=f"Request timed out after {CHECK_TIMEOUT_SECONDS:g} seconds"
        )
    except httpx.HTTPError as e:
        logger.error(f"{name} health check failed: {e}")
        return DependencyStatus(name=name, status="unhealthy", error_message=str(e))

    return DependencyStatus(
        name=name,
        status="healthy",
        latency_ms=round((time.time() - start) * 1000, 2)
    )


async def check_jira(settings: Settings) -> DependencyStatus:
    if not (settings.jira_base_url and settings.jira_email and settings.jira_api_token):
        return DependencyStatus(name="jira", status="degraded", error_message="Credentials not configured")
    return await _check_http(
        "jira",
        f"{settings.JIRA_URL}/rest/api/3/myself",
        auth=(settings.jira_email, settings.jira_api_token),
    )


async def check_supabase(settings: Settings) -> DependencyStatus:
    if not (settings.supabase_url and settings.supabase_service_role_key):
        return DependencyStatus(name="supabase", status="degraded", error_message="Credentials not configured")
    key = settings.supabase_service_role_key
    return await _check_http(
        "supabase",
        f"{settings.supabase_url.rstrip('/')}/rest/v1/ticket_categories",
        params={"select": "ticket_key", "limit": 1},
        headers={"apikey": key, "Authorization": f"Bearer {key}"},
    )


def determine_overall_status(dependencies: Dict[str, DependencyStatus]) -> str:
    """
    Any dependency unhealthy -> "unhealthy", any degraded -> "degraded"
    """
    statuses = {dep.status for dep in dependencies.values()}
    if "unhealthy" in statuses:
        return "unhealthy"
    if "degraded" in statuses:
        return "degraded"
    return "healthy"


@router.get("", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def basic_health_check() -> HealthResponse:
    """Always 200; does not touch external services"""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=APP_VERSION,
        uptime_seconds=round(time.time() - APP_START_TIME, 2)
    )


@router.get("/dependencies", response_model=DependencyHealth)
async def dependency_health_check(settings: Settings = Depends(get_settings)) -> DependencyHealth:
    jira, supabase = await asyncio.gather(check_jira(settings), check_supabase(settings))
    dependencies = {"jira": jira, "supabase": supabase}
    overall = determine_overall_status(dependencies)
    if overall != "healthy":
        logger.warning(f"Dependency health: {overall}")

    return DependencyHealth(
        overall_status=overall,
        dependencies=dependencies,
        checked_at=datetime.now(timezone.utc)
    )
