"""
FastAPI application entry point for the participant lifecycle service.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend.config import get_settings
from backend.errors import LifecycleError
from backend.routes import router

logger = logging.getLogger(__name__)


async def lifecycle_error_handler(request: Request, exc: LifecycleError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    app = FastAPI(title="Participant Lifecycle API", version="0.1.0")
    app.add_exception_handler(LifecycleError, lifecycle_error_handler)
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
