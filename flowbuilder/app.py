"""FastAPI application factory for the Flow Builder editor."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import settings
from .errors import ApiError, GraphError, ParseError, ValidationError
from .services import editor_svc

logger = logging.getLogger(__name__)

GRAPH_ERROR_STATUS = {
    GraphError.NOT_FOUND: 404,
    GraphError.CONFLICT: 409,
    GraphError.NOT_ADJACENT: 422,
    GraphError.INVALID_TARGET: 422,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s (%s)", settings.app_title, settings.environment)
    yield
    editor_svc.clear()


app = FastAPI(title=settings.app_title, lifespan=lifespan)


@app.exception_handler(GraphError)
async def graph_error_handler(request: Request, exc: GraphError):
    return JSONResponse(
        status_code=GRAPH_ERROR_STATUS.get(exc.code, 400),
        content={"detail": exc.message, "code": exc.code},
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message, "field": exc.field, "code": "ValidationError"},
    )


@app.exception_handler(ParseError)
async def parse_error_handler(request: Request, exc: ParseError):
    return JSONResponse(status_code=400, content={"detail": str(exc), "code": "ParseError"})


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    logger.error("Upstream API error on %s: %s", request.url.path, exc.message)
    return JSONResponse(
        status_code=502,
        content={"detail": exc.message, "upstream_status": exc.status_code, "code": "ApiError"},
    )


# Import and register routers
from .routers import editor, health  # noqa: E402

app.include_router(editor.router)
app.include_router(health.router)
