"""FastAPI application entry point."""

import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from .config import settings
from .routers import search_admin_router
from .services.index_client import SearchNotConfiguredError, SearchOperationError

# Configure logging to show errors
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

if not settings.is_search_configured:
    logger.warning(
        "MEILISEARCH_URL or MEILISEARCH_API_KEY is empty -- "
        "search operations will fail until credentials are set."
    )


# Create FastAPI application
app = FastAPI(
    title="Search Sync API",
    description="Record preparation and index administration for the search engine",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)


@app.exception_handler(SearchNotConfiguredError)
async def search_not_configured_handler(request: Request, exc: SearchNotConfiguredError):
    """Missing credentials: the operation cannot run until configuration changes."""
    logger.error(f"Search not configured on {request.method} {request.url}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc)},
    )


@app.exception_handler(SearchOperationError)
async def search_operation_failed_handler(request: Request, exc: SearchOperationError):
    """The engine rejected a write; the index may be inconsistent."""
    logger.error(f"Search operation failed on {request.method} {request.url}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": str(exc)},
    )


# Global exception handler to log errors
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log all unhandled exceptions with full traceback."""
    logger.error(f"Unhandled exception on {request.method} {request.url}:")
    logger.error(f"Exception type: {type(exc).__name__}")
    logger.error(f"Exception message: {str(exc)}")
    logger.error(f"Traceback:\n{traceback.format_exc()}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


# Include API routers
app.include_router(search_admin_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "search_configured": settings.is_search_configured,
    }
