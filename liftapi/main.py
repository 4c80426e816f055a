from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from liftapi.observability import (
    configure_logging,
    monotonic_ms,
    new_request_id,
    request_log_fields,
    reset_request_id,
    set_request_id,
)
from liftapi.routes import router
from liftcore.config import get_settings
from liftcore.errors import MalformedDefinition, UnknownRuleKind
from liftcore.services.catalog import invalidate_catalog_cache, reload_presets

logger = logging.getLogger(__name__)


async def unknown_rule_kind_handler(request: Request, exc: UnknownRuleKind) -> JSONResponse:
    logger.warning(
        "unknown_rule_kind",
        extra={"ctx_path": request.url.path, "ctx_kind": exc.kind, "ctx_slot_id": exc.slot_id},
    )
    return JSONResponse(status_code=422, content={"detail": str(exc), "code": "UNKNOWN_RULE_KIND"})


async def malformed_definition_handler(request: Request, exc: MalformedDefinition) -> JSONResponse:
    logger.warning(
        "malformed_definition",
        extra={"ctx_path": request.url.path, "ctx_slot_id": exc.slot_id, "ctx_error": str(exc)},
    )
    return JSONResponse(status_code=422, content={"detail": str(exc), "code": "MALFORMED_DEFINITION"})


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)
    header_name = settings.request_id_header_name or "X-Request-ID"

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        presets = reload_presets()
        logger.info(
            "catalog_loaded",
            extra={"ctx_presets": sorted(presets), "ctx_cache_ttl_seconds": settings.catalog_cache_ttl_seconds},
        )
        try:
            yield
        finally:
            invalidate_catalog_cache()

    app = FastAPI(title="Lift Progression API", version="1.0.0", lifespan=lifespan)
    app.add_exception_handler(UnknownRuleKind, unknown_rule_kind_handler)
    app.add_exception_handler(MalformedDefinition, malformed_definition_handler)
    app.include_router(router)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context_and_logging(request: Request, call_next: Callable) -> Response:
        request_id = (request.headers.get(header_name) or "").strip() or new_request_id()
        token = set_request_id(request_id)
        started_ms = monotonic_ms()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[header_name] = request_id
            return response
        finally:
            fields = request_log_fields(
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_ms=monotonic_ms() - started_ms,
                client_ip=getattr(request.client, "host", None),
            )
            if status_code >= 500:
                logger.error("http_request_error", extra=fields)
            else:
                logger.info("http_request", extra=fields)
            reset_request_id(token)

    return app


app = create_app()
