# src/filereg/api/errors.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from filereg.errors import InvalidInput, RegistryError


@dataclass(eq=False)
class ApiError(Exception):
    status_code: int
    code: str
    message: str
    details: Dict[str, Any]

    @staticmethod
    def bad_request(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(400, code, message, details or {})

    @staticmethod
    def internal(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(500, code, message, details or {})

    @staticmethod
    def from_registry_error(e: RegistryError) -> "ApiError":
        """Caller errors are 400; every store/ledger/signer failure is 500."""
        if isinstance(e, InvalidInput):
            return ApiError.bad_request(e.code, e.message, e.details)
        return ApiError.internal(e.code, e.message, e.details)

    def to_response(self) -> JSONResponse:
        return JSONResponse(
            status_code=self.status_code,
            content={
                "ok": False,
                "error": {"code": self.code, "message": self.message, "details": self.details},
            },
        )


async def api_error_handler(_request: Request, exc: ApiError) -> JSONResponse:
    return exc.to_response()


async def registry_error_handler(_request: Request, exc: RegistryError) -> JSONResponse:
    return ApiError.from_registry_error(exc).to_response()


async def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    errs = exc.errors()
    first = errs[0] if errs else {}
    msg = str(first.get("msg") or "invalid request")
    loc = ".".join(str(p) for p in (first.get("loc") or ()))
    return ApiError.bad_request(
        "bad_request",
        f"Failed to parse request: {loc}: {msg}" if loc else f"Failed to parse request: {msg}",
        {"errors": len(errs)},
    ).to_response()
