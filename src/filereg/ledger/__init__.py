# src/filereg/ledger/__init__.py
"""
Ledger side of the registry.

- signer: holds the private key and chain id, produces SignerParams
- binding: typed save/get over the FileRegistry contract ABI
"""

from filereg.ledger.base import LedgerBinding
from filereg.ledger.binding import FileRegistryBinding, load_abi
from filereg.ledger.signer import SignerParams, TransactionSigner

__all__ = ["FileRegistryBinding", "LedgerBinding", "SignerParams", "TransactionSigner", "load_abi"]
