# src/filereg/api/routes_public.py
from __future__ import annotations

from fastapi import APIRouter

from filereg.api.routes_public_parts.files import router as files_router
from filereg.api.routes_public_parts.health import router as health_router

public_router = APIRouter()

# Versioned API surface
public_router.include_router(health_router, prefix="/v1", tags=["health"])
public_router.include_router(files_router, prefix="/v1", tags=["files"])
