# src/filereg/errors.py
"""Error taxonomy shared by the registry core and its boundaries.

Every external-call failure keeps its kind on the way up. The HTTP layer
maps kinds to status codes (see filereg.api.errors).
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class RegistryError(Exception):
    """Base class. `code` is stable and safe to expose to clients."""

    code = "registry_error"

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})

    def __str__(self) -> str:
        return f"{self.code}:{self.message}"


class InvalidInput(RegistryError):
    code = "invalid_input"


class StoreUnavailable(RegistryError):
    code = "store_unavailable"


class StoreError(RegistryError):
    code = "store_error"


class SubmissionError(RegistryError):
    code = "submission_error"


class QueryError(RegistryError):
    code = "query_error"


class InvalidKey(RegistryError):
    code = "invalid_key"


class ChainBindingError(RegistryError):
    code = "chain_binding_error"


class RequestCancelled(RegistryError):
    code = "request_cancelled"


class ConfigError(RegistryError):
    code = "config_error"
