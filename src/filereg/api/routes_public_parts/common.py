# src/filereg/api/routes_public_parts/common.py
from __future__ import annotations

from fastapi import Request

from filereg.api.errors import ApiError
from filereg.context import CallContext
from filereg.registry import FileRegistry


def _registry(request: Request) -> FileRegistry:
    reg = getattr(request.app.state, "registry", None)
    if reg is None:
        raise ApiError.internal("not_ready", "registry not attached to app.state", {})
    return reg


def _call_context(request: Request) -> CallContext:
    """One cancellation scope per request, bounded by FILEREG_REQUEST_TIMEOUT_S.

    Carries the id assigned by RequestLogMiddleware so registry events can be
    matched to their http_request line.
    """
    settings = getattr(request.app.state, "settings", None)
    timeout_s = getattr(settings, "request_timeout_s", None)
    request_id = str(getattr(request.state, "request_id", "") or "")
    return CallContext.with_timeout(timeout_s, request_id=request_id)
