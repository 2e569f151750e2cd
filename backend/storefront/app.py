"""
FastAPI application factory and the centralized error responder.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from . import __version__
from .api import api_router
from .api.deps import get_context
from .context import AppContext, build_context
from .errors import StorefrontError
from .utils.config import StorefrontConfig, load_config

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def describe_validation_errors(errors: List[Dict[str, Any]]) -> str:
    """One line naming each offending field, e.g. ``price: Input should be ...``."""
    parts = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "form")]
        field = ".".join(location) or "request"
        parts.append(f"{field}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts) or "Invalid request"


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": describe_validation_errors(exc.errors())},
    )


async def model_validation_handler(request: Request, exc: PydanticValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": describe_validation_errors(exc.errors())},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500, content={"success": False, "message": "Internal Server Error"}
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(PydanticValidationError, model_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


def create_app(
    context: Optional[AppContext] = None,
    settings: Optional[StorefrontConfig] = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        context: Prebuilt context (tests); when omitted one is built from
            ``settings`` at startup and closed at shutdown
        settings: Configuration, loaded from the environment when omitted
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = app.state.context is None
        if owned:
            app.state.context = await build_context(settings or load_config())
        logger.info("Storefront API started")
        yield
        if owned:
            await app.state.context.close()
            app.state.context = None
        logger.info("Storefront API stopped")

    app = FastAPI(title="Storefront API", version=__version__, lifespan=lifespan)
    app.state.context = context
    register_exception_handlers(app)
    app.include_router(api_router, prefix=API_PREFIX)

    @app.get("/")
    async def health(context: AppContext = Depends(get_context)):
        return {"success": True, "cache": await context.cache.health_check()}

    return app
