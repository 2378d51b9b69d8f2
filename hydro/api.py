# -*- coding: utf-8 -*-
"""
Hydro API

Sign-up/sign-in, profile settings, water logging with day-aware daily totals,
and a WebSocket for session-scoped reminders.
"""

from __future__ import annotations

import logging
import math
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .app_db import init_app_db
from .auth.api import router as auth_router
from .auth.errors import AuthError
from .config import settings
from .logging_setup import setup_logging
from .profiles.api import router as profile_router
from .reminders.websocket import reminders_endpoint
from .store import DocumentNotFound, StorePermissionError, TransactionFailure
from .water.api import router as water_router
from .water.ledger import SAVE_FAILED_MESSAGE

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Hydro",
    description="Personal hydration tracking: daily intake against a goal, with reminders.",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def _startup() -> None:
    setup_logging()
    init_app_db(settings.db_path)
    logger.info("Hydro started (db=%s)", settings.db_path)


# Ensure the app DB exists even when lifespan events are not triggered (e.g. some test clients).
init_app_db(settings.db_path)


def _json_safe(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    return value


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Strict JSON has no Infinity or NaN, so rejected inputs are echoed as strings.
    return JSONResponse(status_code=422, content={"detail": _json_safe(jsonable_encoder(exc.errors()))})


@app.exception_handler(AuthError)
async def _auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})


@app.exception_handler(StorePermissionError)
async def _permission_error_handler(request: Request, exc: StorePermissionError) -> JSONResponse:
    logger.error("Store permission error: %s", exc, extra=exc.to_dict())
    return JSONResponse(status_code=403, content={"detail": str(exc), **exc.to_dict()})


@app.exception_handler(TransactionFailure)
async def _transaction_failure_handler(request: Request, exc: TransactionFailure) -> JSONResponse:
    return JSONResponse(status_code=503, content={"detail": SAVE_FAILED_MESSAGE})


@app.exception_handler(DocumentNotFound)
async def _not_found_handler(request: Request, exc: DocumentNotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(water_router)
app.add_api_websocket_route("/ws/reminders", reminders_endpoint)


@app.get("/api/health")
def health() -> dict:
    return {"ok": True}
