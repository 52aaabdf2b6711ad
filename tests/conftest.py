from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure local "src/" takes precedence over any globally-installed "filereg" package.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

src_str = str(SRC)
if src_str not in sys.path:
    sys.path.insert(0, src_str)

from filereg.ledger.signer import SignerParams, TransactionSigner  # noqa: E402

# Hardhat / anvil default account #0. Public test key, never funded on a real chain.
TEST_PRIVATE_KEY_HEX = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
TEST_CONTRACT = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
TEST_CHAIN_ID = 31337


@pytest.fixture()
def auth() -> SignerParams:
    return TransactionSigner(bytes.fromhex(TEST_PRIVATE_KEY_HEX[2:]), TEST_CHAIN_ID).authorize()


@pytest.fixture()
def registry_env(monkeypatch: pytest.MonkeyPatch) -> dict:
    env = {
        "CONTRACT_ADDRESS": TEST_CONTRACT,
        "ETH_RPC_URL": "http://127.0.0.1:8545",
        "IPFS_URL": "http://127.0.0.1:5001",
        "PORT": "8001",
        "CHAIN_ID": str(TEST_CHAIN_ID),
        "PRIVATE_KEY": TEST_PRIVATE_KEY_HEX,
    }
    for k, v in env.items():
        monkeypatch.setenv(k, v)
    return env
