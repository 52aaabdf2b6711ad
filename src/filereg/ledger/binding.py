# src/filereg/ledger/binding.py
from __future__ import annotations

import json
import logging
import threading
from contextlib import contextmanager
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from web3 import HTTPProvider, Web3

from filereg.context import CallContext
from filereg.errors import QueryError, RegistryError, SubmissionError
from filereg.event_log import log_event
from filereg.ledger.signer import SignerParams

Abi = List[Dict[str, Any]]

# Smallest timeout handed to requests; it rejects 0.
_MIN_TIMEOUT_S = 0.001

_active = threading.local()


@contextmanager
def rpc_deadline(ctx: CallContext) -> Iterator[None]:
    """Bound every JSON-RPC request made by this thread by ctx's deadline."""
    prev = getattr(_active, "ctx", None)
    _active.ctx = ctx
    try:
        yield
    finally:
        _active.ctx = prev


class DeadlineHTTPProvider(HTTPProvider):
    """HTTPProvider whose per-request timeout shrinks to the caller's remaining time.

    Requests run on the calling thread, so the active CallContext is thread-local
    and one provider can serve concurrent requests with different deadlines.
    """

    def get_request_kwargs(self) -> Dict[str, Any]:
        kwargs = dict(super().get_request_kwargs())
        ctx: Optional[CallContext] = getattr(_active, "ctx", None)
        remaining = ctx.remaining() if ctx is not None else None
        if remaining is not None:
            cap = max(_MIN_TIMEOUT_S, remaining)
            base = kwargs.get("timeout")
            kwargs["timeout"] = cap if base is None else min(float(base), cap)
        return kwargs


def load_abi(path: Optional[Path] = None) -> Abi:
    """Load the FileRegistry ABI (package data unless a path is given)."""
    if path is not None:
        raw = Path(path).read_text(encoding="utf-8")
    else:
        raw = resources.files("filereg.contracts").joinpath("file_registry.abi").read_text(encoding="utf-8")
    abi = json.loads(raw)
    if not isinstance(abi, list):
        raise ValueError("contract ABI must be a JSON array")

    names = {str(item.get("name")) for item in abi if isinstance(item, dict) and item.get("type") == "function"}
    missing = {"save", "get"} - names
    if missing:
        raise ValueError(f"contract ABI is missing functions: {sorted(missing)}")
    return abi


class FileRegistryBinding:
    """Typed calls against a deployed FileRegistry contract.

    Built once at startup and shared read-only by all requests. Nonces are
    taken from the node's pending count on every save; concurrent saves from
    the same signer can therefore collide, and the node's rejection surfaces
    as SubmissionError.
    """

    def __init__(self, w3: Web3, contract_address: str, abi: Abi) -> None:
        self._w3 = w3
        self.address = Web3.to_checksum_address(contract_address)
        self.abi = abi
        self._contract = w3.eth.contract(address=self.address, abi=abi)
        self._logger = logging.getLogger("filereg.ledger")

    @classmethod
    def connect(
        cls,
        rpc_url: str,
        contract_address: str,
        *,
        abi: Optional[Abi] = None,
        timeout_s: Optional[float] = None,
    ) -> "FileRegistryBinding":
        request_kwargs: Dict[str, Any] = {}
        if timeout_s is not None:
            request_kwargs["timeout"] = float(timeout_s)
        # No provider-level retries: a retried read would outlive the request deadline.
        provider = DeadlineHTTPProvider(rpc_url, request_kwargs=request_kwargs, exception_retry_configuration=None)
        return cls(Web3(provider), contract_address, abi if abi is not None else load_abi())

    @property
    def rpc_url(self) -> str:
        return str(getattr(self._w3.provider, "endpoint_uri", "") or "")

    def save(self, auth: SignerParams, path: str, cid: str, *, ctx: Optional[CallContext] = None) -> str:
        """Sign and submit save(path, cid). Returns the tx hash (0x-hex).

        Acceptance by the node only; the receipt is not awaited. The reads that
        prepare the tx are bounded by ctx; the submission itself is not, and no
        cancellation is reported once the node may have accepted it.
        """
        ctx = ctx or CallContext.background()
        try:
            with rpc_deadline(ctx):
                ctx.check("ledger_save")
                fn = self._contract.functions.save(path, cid)
                nonce = self._w3.eth.get_transaction_count(auth.address, "pending")
                gas = fn.estimate_gas({"from": auth.address})
                tx = fn.build_transaction(
                    {
                        "from": auth.address,
                        "chainId": auth.chain_id,
                        "nonce": nonce,
                        "gas": gas,
                        "gasPrice": self._w3.eth.gas_price,
                    }
                )
            raw = auth.sign(tx)
            ctx.check("ledger_save")
        except RegistryError:
            raise
        except Exception as e:
            ctx.check("ledger_save")
            raise SubmissionError(f"contract save error: {e}", details={"path": path, "cid": cid}) from e

        try:
            tx_hash = self._w3.eth.send_raw_transaction(raw)
        except Exception as e:
            raise SubmissionError(f"contract save error: {e}", details={"path": path, "cid": cid}) from e

        out = Web3.to_hex(tx_hash)
        log_event(self._logger, "ledger_save_submitted", path=path, cid=cid, tx_hash=out, nonce=int(nonce))
        return out

    def get(self, path: str, *, ctx: Optional[CallContext] = None) -> str:
        """Read the CID for path.

        An unset path reads back as "" exactly like a path saved with an
        empty CID; the contract offers no way to tell them apart.
        """
        ctx = ctx or CallContext.background()
        ctx.check("ledger_get")
        try:
            with rpc_deadline(ctx):
                out = self._contract.functions.get(path).call()
        except Exception as e:
            ctx.check("ledger_get")
            raise QueryError(f"contract get error: {e}", details={"path": path}) from e
        ctx.check("ledger_get")

        if not isinstance(out, str):
            raise QueryError(f"contract get returned {type(out).__name__}, expected string", details={"path": path})
        return out
