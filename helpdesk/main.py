"""
Helpdesk Portal - FastAPI Backend
"""
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from helpdesk.config import get_settings
from helpdesk.exceptions import (
    BulkOperationFailed,
    ConfigurationError,
    StoreError,
    TrackerError,
    TransitionUnavailable,
    Unauthorized,
)
from helpdesk.middleware.logging_middleware import LoggingMiddleware
from helpdesk.routes import acknowledgement, categories, chat, health, pending, sync, tickets
from helpdesk.services.ack_cache import TTLCache
from helpdesk.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)

app = FastAPI(
    title="Helpdesk Portal",
    description="Customer ticket portal backed by Jira and Supabase",
    version=health.APP_VERSION
)

# Acknowledgement read-your-own-write cache, owned by this process
app.state.acknowledgement_cache = TTLCache(settings.acknowledgement_cache_ttl)

# Middleware runs bottom-up: logging sees the request after CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)


# ============================================================================
# Error mapping
# ============================================================================

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "detail": jsonable_encoder(exc.errors())}
    )


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.exception_handler(Unauthorized)
async def unauthorized_handler(request: Request, exc: Unauthorized):
    return JSONResponse(status_code=403, content={"detail": str(exc)})


@app.exception_handler(TransitionUnavailable)
async def transition_unavailable_handler(request: Request, exc: TransitionUnavailable):
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc), "availableTransitions": exc.available}
    )


@app.exception_handler(TrackerError)
async def tracker_error_handler(request: Request, exc: TrackerError):
    logger.error(f"Jira error on {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(BulkOperationFailed)
async def bulk_operation_failed_handler(request: Request, exc: BulkOperationFailed):
    logger.error(f"Bulk operation on {request.url.path} did not start: {exc}")
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    return JSONResponse(status_code=500, content={"detail": str(exc)})


# Routers define their own prefixes
app.include_router(health.router)
app.include_router(sync.router)
app.include_router(tickets.router)
app.include_router(categories.router)
app.include_router(chat.router)
app.include_router(acknowledgement.router)
app.include_router(pending.router)


@app.get("/")
async def root():
    return {"message": "Helpdesk Portal API", "version": health.APP_VERSION}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.fastapi_host, port=settings.fastapi_port)
