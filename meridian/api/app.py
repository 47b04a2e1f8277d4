"""
FastAPI application.
"""

from __future__ import annotations

import importlib.metadata
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, Dict, List

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..adapters import get_services, set_services
from ..config import get_settings
from ..core.errors import DomainError
from ..core.issue_link import DEFAULT_RELATIONSHIP_TYPES
from ..log import configure_logging
from .routes import router

logger = structlog.get_logger()

settings = get_settings()

ERROR_STATUS = {
    "NOT_FOUND": 404,
    "VALIDATION_ERROR": 422,
    "CONFLICT": 409,
    "AUTHORIZATION_ERROR": 401,
    "RATE_LIMITED": 429,
    "UNKNOWN_LINK_TYPE": 422,
    "GITHUB_SERVER_ERROR": 502,
    "GITHUB_ERROR": 502,
}


def package_version() -> str:
    try:
        return importlib.metadata.version("meridian-tracker")
    except importlib.metadata.PackageNotFoundError:
        return "0.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    configure_logging(settings.log_level, settings.log_format)
    services = get_services()
    logger.info("meridian_api_started", adapter=services.adapter)

    yield

    logger.info("meridian_api_stopping")
    await services.close()
    set_services(None)


app = FastAPI(
    title="Meridian",
    description="Issue tracker abstraction over in-memory and GitHub backends",
    version=package_version(),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status_code = ERROR_STATUS.get(exc.code, 500)
    if status_code >= 500:
        logger.error("request_failed", path=request.url.path, code=exc.code, message=exc.message)
    return JSONResponse(status_code=status_code, content={"error": exc.to_dict()})


@app.get("/health", tags=["system"])
async def health() -> Dict[str, str]:
    """Basic health check endpoint."""
    return {"status": "ok", "adapter": get_services().adapter}


@app.get("/version", tags=["system"])
def version() -> Dict[str, str]:
    """Return the version of the application."""
    return {"version": package_version()}


@app.get("/relationship-types", tags=["links"])
def relationship_types() -> List[Dict[str, Any]]:
    """The catalogue of link types and their labels."""
    return [rt.model_dump() for rt in DEFAULT_RELATIONSHIP_TYPES]


app.include_router(router)
