# src/filereg/registry.py
"""Upload / resolve orchestration.

Upload is strictly sequential: content store first, then the ledger write
that records the returned CID. There is no retry and no compensation. If
the ledger write fails the blob stays in the content store unreferenced,
and the caller sees SubmissionError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from filereg.context import CallContext
from filereg.errors import InvalidInput, RegistryError, StoreError
from filereg.event_log import log_event
from filereg.ledger.base import LedgerBinding
from filereg.ledger.signer import SignerParams
from filereg.store.base import ContentStore

log = logging.getLogger("filereg.registry")


@dataclass(frozen=True)
class UploadResult:
    cid: str
    tx_hash: str


def _require_path(path: str) -> None:
    """Paths are ABI-encoded as UTF-8 strings; reject what cannot be encoded."""
    if not path:
        raise InvalidInput("missing filePath")
    try:
        path.encode("utf-8")
    except UnicodeEncodeError:
        raise InvalidInput("filePath is not valid UTF-8") from None


class FileRegistry:
    """Composes a content store, a ledger binding and signer params.

    Holds no per-request state; one instance serves concurrent requests.
    """

    def __init__(self, *, store: ContentStore, ledger: LedgerBinding, auth: SignerParams) -> None:
        self._store = store
        self._ledger = ledger
        self._auth = auth

    @property
    def signer_address(self) -> str:
        return self._auth.address

    def _event(self, ctx: CallContext, event: str, *, level: int = logging.INFO, **fields) -> None:
        if ctx.request_id:
            fields["request_id"] = ctx.request_id
        log_event(log, event, level=level, **fields)

    def upload(self, path: str, content: bytes, *, ctx: Optional[CallContext] = None) -> UploadResult:
        _require_path(path)
        ctx = ctx or CallContext.background()

        try:
            ctx.check("store_add")
            cid = self._store.add(bytes(content), ctx=ctx)
            if not cid:
                raise StoreError("content store returned an empty CID")
        except RegistryError as e:
            self._event(ctx, "upload_failed", level=logging.WARNING, path=path, stage="store", code=e.code, error=e.message)
            raise

        self._event(ctx, "upload_stored", path=path, cid=cid, size=len(content))

        try:
            ctx.check("ledger_save")
            tx_hash = self._ledger.save(self._auth, path, cid, ctx=ctx)
        except RegistryError as e:
            # Content stays in the store; no ledger record points at it.
            self._event(
                ctx, "upload_failed", level=logging.WARNING, path=path, stage="ledger", cid=cid, code=e.code, error=e.message
            )
            raise

        self._event(ctx, "upload_recorded", path=path, cid=cid, tx_hash=tx_hash)
        return UploadResult(cid=cid, tx_hash=tx_hash)

    def resolve(self, path: str, *, ctx: Optional[CallContext] = None) -> str:
        _require_path(path)
        ctx = ctx or CallContext.background()

        try:
            ctx.check("ledger_get")
            cid = self._ledger.get(path, ctx=ctx)
        except RegistryError as e:
            self._event(ctx, "resolve_failed", level=logging.WARNING, path=path, code=e.code, error=e.message)
            raise

        self._event(ctx, "resolve_ok", path=path, cid=cid)
        return cid
