# src/filereg/api/app.py
from __future__ import annotations

import os
from typing import List

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from filereg.api.errors import ApiError, api_error_handler, registry_error_handler, validation_error_handler
from filereg.api.routes_public import public_router
from filereg.api.security import RequestSizeLimitMiddleware
from filereg.api.structured_logging import RequestLogMiddleware
from filereg.boot import build_registry as _build_registry
from filereg.config import load_api_settings
from filereg.errors import RegistryError
from filereg.registry import FileRegistry


def build_registry() -> FileRegistry:
    """Build the FileRegistry for API runtime.

    This wrapper exists so tests can monkeypatch `filereg.api.app.build_registry`
    without reaching into boot code.
    """
    return _build_registry()


def _parse_cors_origins(mode: str) -> List[str]:
    """Parse CORS origins.

    Policy:
      - If FILEREG_CORS_ORIGINS is unset/empty -> CORS disabled
      - Wildcard "*" is rejected in FILEREG_MODE=prod
    """
    raw = os.environ.get("FILEREG_CORS_ORIGINS", "").strip()
    if not raw:
        return []

    origins = [o.strip() for o in raw.split(",") if o.strip()]

    if "*" in origins:
        if mode == "prod":
            raise RuntimeError(
                "Unsafe CORS configuration: wildcard '*' not allowed in production. "
                "Set explicit origins in FILEREG_CORS_ORIGINS."
            )
        return ["*"]

    return origins


def create_app(*, boot_runtime: bool = True) -> FastAPI:
    """Create the FastAPI application.

    boot_runtime:
      - True (default): load config, authorize the signer, bind the contract,
        attach app.state.registry. Any failure aborts startup.
      - False: no registry; tests attach their own to app.state.registry.
    """
    settings = load_api_settings()

    if settings.mode == "prod":
        app = FastAPI(title="File Registry API", docs_url=None, redoc_url=None, openapi_url=None)
    else:
        app = FastAPI(title="File Registry API")

    app.state.settings = settings
    app.state.registry = build_registry() if boot_runtime else None

    # --- Errors ---
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RegistryError, registry_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # --- Middleware ---
    # Added last runs first: request log wraps the size limiter.
    app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_bytes)
    app.add_middleware(RequestLogMiddleware)

    cors_origins = _parse_cors_origins(settings.mode)
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=cors_origins != ["*"],
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type"],
        )

    # --- Routers ---
    app.include_router(public_router)

    return app
