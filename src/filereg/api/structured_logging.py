# src/filereg/api/structured_logging.py
from __future__ import annotations

import logging
import os
import re
import time
import uuid
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from filereg.event_log import log_event

REQUEST_ID_HEADER = "x-request-id"

# Client-supplied ids are logged verbatim, so only short token-like values are kept.
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")


def configure_structured_logging() -> None:
    """Configure stdlib logging for JSONL output (stdout).

    Level from FILEREG_LOG_LEVEL (default INFO). Safe to call more than once.
    """
    level_name = (os.environ.get("FILEREG_LOG_LEVEL") or "INFO").strip().upper()
    level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    if getattr(root, "_filereg_configured", False):  # type: ignore[attr-defined]
        root.setLevel(level)
        return

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root.handlers = [handler]
    root.setLevel(level)
    setattr(root, "_filereg_configured", True)  # type: ignore[attr-defined]


def request_id_for(request: Request) -> str:
    """Reuse a well-formed x-request-id from the client, otherwise mint one."""
    raw = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    if raw and _REQUEST_ID_RE.match(raw):
        return raw
    return uuid.uuid4().hex


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Assigns every request an id and logs one `http_request` event for it.

    The id lands on request.state.request_id (the routes copy it into the
    CallContext, so upload_*/resolve_* events carry it too) and is echoed
    in the x-request-id response header.

    FILEREG_LOG_REQUESTS=0 silences the http_request line; ids are still assigned.
    """

    def __init__(self, app) -> None:
        super().__init__(app)
        raw = (os.environ.get("FILEREG_LOG_REQUESTS") or "1").strip().lower()
        self._enabled = raw not in {"0", "false", "no", "n", "off"}
        self._logger = logging.getLogger("filereg.http")

    async def dispatch(self, request: Request, call_next):
        started = time.monotonic()
        request_id = request_id_for(request)
        request.state.request_id = request_id

        status = 500
        err: Optional[str] = None
        response: Optional[Response] = None

        try:
            response = await call_next(request)
            status = int(getattr(response, "status_code", 200) or 200)
            return response
        except Exception as e:
            err = str(e)
            raise
        finally:
            if response is not None:
                response.headers[REQUEST_ID_HEADER] = request_id
            if self._enabled:
                log_event(
                    self._logger,
                    "http_request",
                    level=logging.WARNING if status >= 500 else logging.INFO,
                    request_id=request_id,
                    method=request.method,
                    path=str(request.url.path or ""),
                    status=status,
                    duration_ms=int((time.monotonic() - started) * 1000),
                    error=err,
                )
