# src/filereg/api/routes_public_parts/health.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
def health(request: Request) -> Dict[str, Any]:
    """Liveness; `ready` is false until a registry is attached."""
    return {"ok": True, "ready": getattr(request.app.state, "registry", None) is not None}
