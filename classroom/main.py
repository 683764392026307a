"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from classroom.api import audit, enrollments, health, projects
from classroom.core.database import init_db
from classroom.core.errors import (
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    ServiceError,
)
from classroom.core.settings import settings

# Configure logging
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

ERROR_STATUS = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    InternalError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Classroom application...")

    await init_db()
    logger.info("Database initialized")

    yield

    logger.info("Application stopped")


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Map service errors to HTTP responses."""
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Never leak internals to the caller."""
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    logger.exception(exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An unexpected error occurred", "code": "internal_error"},
    )


# Create FastAPI app
app = FastAPI(
    title="Classroom Enrollment Service",
    description="Course enrollment and project group assignment",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_exception_handler(ServiceError, service_error_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(health.router)
app.include_router(enrollments.router, prefix="/api")
app.include_router(projects.router, prefix="/api")
app.include_router(audit.router, prefix="/api")


if __name__ == "__main__":
    import uvicorn
    import os
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(
        "classroom.main:app",
        host="0.0.0.0",
        port=port,
        reload=settings.env == "dev",
        proxy_headers=True,
        forwarded_allow_ips="*",
    )
