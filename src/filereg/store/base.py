# src/filereg/store/base.py
from __future__ import annotations

from typing import Optional, Protocol

from filereg.context import CallContext


class ContentStore(Protocol):
    def add(self, data: bytes, *, ctx: Optional[CallContext] = None) -> str:
        """Write `data` to the store and return its root CID."""
        ...
