# src/filereg/ledger/base.py
from __future__ import annotations

from typing import Optional, Protocol

from filereg.context import CallContext
from filereg.ledger.signer import SignerParams


class LedgerBinding(Protocol):
    def save(self, auth: SignerParams, path: str, cid: str, *, ctx: Optional[CallContext] = None) -> str:
        """Submit save(path, cid); return the transaction hash."""
        ...

    def get(self, path: str, *, ctx: Optional[CallContext] = None) -> str:
        """Read the CID recorded for path ("" when unset)."""
        ...
