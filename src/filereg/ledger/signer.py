# src/filereg/ledger/signer.py
"""Transaction signing for mutating ledger calls.

The private key never leaves this module: callers get SignerParams, which
can sign a transaction dict but does not expose the key material.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from eth_account import Account
from eth_account.signers.local import LocalAccount

from filereg.errors import ChainBindingError, InvalidKey

Json = Dict[str, Any]


@dataclass(frozen=True)
class SignerParams:
    address: str
    chain_id: int
    _account: LocalAccount = field(repr=False, compare=False)

    def sign(self, tx: Json) -> bytes:
        """Sign a fully built transaction dict; returns raw signed bytes."""
        tx_chain = tx.get("chainId")
        if tx_chain is not None and int(tx_chain) != self.chain_id:
            raise ChainBindingError(
                f"transaction chainId {tx_chain} does not match signer chain {self.chain_id}",
                details={"tx_chain_id": int(tx_chain), "chain_id": self.chain_id},
            )
        signed = self._account.sign_transaction(dict(tx, chainId=self.chain_id))
        return bytes(signed.raw_transaction)


class TransactionSigner:
    """Holds a SignerIdentity (private key + chain id) for the process lifetime."""

    def __init__(self, private_key: bytes, chain_id: int) -> None:
        self._private_key = bytes(private_key)
        self._chain_id = chain_id

    def __repr__(self) -> str:
        return f"TransactionSigner(chain_id={self._chain_id!r})"

    @property
    def chain_id(self) -> int:
        return self._chain_id

    def authorize(self) -> SignerParams:
        """Build reusable signing params. Same identity in, same params out."""
        try:
            account: LocalAccount = Account.from_key(self._private_key)
        except Exception as e:
            raise InvalidKey(f"failed to parse private key: {type(e).__name__}") from e

        chain_id = self._chain_id
        if isinstance(chain_id, bool) or not isinstance(chain_id, int) or chain_id <= 0:
            raise ChainBindingError(
                f"failed to create transactor with chain ID: {chain_id!r}",
                details={"chain_id": repr(chain_id)},
            )

        return SignerParams(address=account.address, chain_id=chain_id, _account=account)
