# src/filereg/config.py
from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import List, Mapping, Optional
from urllib.parse import urlparse

from web3 import Web3

from filereg.errors import ConfigError

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_PRIVATE_KEY_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")
_ZERO_ADDRESS = "0x" + "0" * 40

DEFAULT_CHAIN_ID = 1


@dataclass(frozen=True)
class RegistryConfig:
    contract_address: str
    eth_rpc_url: str
    ipfs_url: str
    port: int
    chain_id: int
    private_key: bytes = field(repr=False)


@dataclass(frozen=True)
class ApiSettings:
    mode: str  # "dev" | "prod"
    host: str
    max_request_bytes: int
    request_timeout_s: Optional[float]
    eth_rpc_timeout_s: Optional[float]


def _is_http_url(v: str) -> bool:
    try:
        u = urlparse(v)
    except ValueError:
        return False
    return u.scheme in {"http", "https"} and bool(u.hostname)


def _optional_float(env: Mapping[str, str], name: str) -> Optional[float]:
    raw = (env.get(name) or "").strip()
    if not raw:
        return None
    try:
        v = float(raw)
    except ValueError:
        raise ConfigError(f"config validation error: {name} must be a number", details={"field": name})
    return v if v > 0 else None


def load_registry_config(environ: Optional[Mapping[str, str]] = None) -> RegistryConfig:
    """Read and validate the registry's startup configuration.

    Problems are collected and reported together:
      ConfigError("config validation error: CONTRACT_ADDRESS ...; PORT ...")
    """
    env = os.environ if environ is None else environ
    problems: List[str] = []

    address = (env.get("CONTRACT_ADDRESS") or "").strip()
    if not address:
        problems.append("CONTRACT_ADDRESS is required")
    elif not _ADDRESS_RE.match(address):
        problems.append("CONTRACT_ADDRESS must be 0x followed by 40 hex characters")
    elif address.lower() == _ZERO_ADDRESS:
        problems.append("CONTRACT_ADDRESS must not be the zero address")

    eth_rpc_url = (env.get("ETH_RPC_URL") or "").strip()
    if not eth_rpc_url:
        problems.append("ETH_RPC_URL is required")
    elif not _is_http_url(eth_rpc_url):
        problems.append("ETH_RPC_URL must be an http(s) URL")

    ipfs_url = (env.get("IPFS_URL") or "").strip()
    if not ipfs_url:
        problems.append("IPFS_URL is required")
    elif not _is_http_url(ipfs_url):
        problems.append("IPFS_URL must be an http(s) URL")

    port_s = (env.get("PORT") or "").strip()
    port = 0
    if not port_s:
        problems.append("PORT is required")
    elif not port_s.isdigit():
        problems.append("PORT must be numeric")
    else:
        port = int(port_s)

    chain_s = (env.get("CHAIN_ID") or "").strip()
    chain_id = DEFAULT_CHAIN_ID
    if chain_s:
        if not chain_s.isdigit() or int(chain_s) <= 0:
            problems.append("CHAIN_ID must be a positive integer")
        else:
            chain_id = int(chain_s)

    key_s = (env.get("PRIVATE_KEY") or "").strip()
    private_key = b""
    if not key_s:
        problems.append("PRIVATE_KEY is required")
    elif not _PRIVATE_KEY_RE.match(key_s):
        problems.append("PRIVATE_KEY must be 0x followed by 64 hex characters")
    else:
        private_key = bytes.fromhex(key_s[2:])

    if problems:
        raise ConfigError("config validation error: " + "; ".join(problems), details={"problems": problems})

    return RegistryConfig(
        contract_address=Web3.to_checksum_address(address),
        eth_rpc_url=eth_rpc_url.rstrip("/"),
        ipfs_url=ipfs_url.rstrip("/"),
        port=port,
        chain_id=chain_id,
        private_key=private_key,
    )


def load_api_settings(environ: Optional[Mapping[str, str]] = None) -> ApiSettings:
    env = os.environ if environ is None else environ
    mode = (env.get("FILEREG_MODE") or "prod").strip().lower()
    host = (env.get("FILEREG_API_HOST") or "127.0.0.1").strip()

    try:
        max_bytes = int((env.get("FILEREG_MAX_REQUEST_BYTES") or "").strip() or 16 * 1024 * 1024)
    except ValueError:
        max_bytes = 16 * 1024 * 1024

    return ApiSettings(
        mode=mode,
        host=host,
        max_request_bytes=max_bytes,
        request_timeout_s=_optional_float(env, "FILEREG_REQUEST_TIMEOUT_S"),
        eth_rpc_timeout_s=_optional_float(env, "FILEREG_ETH_RPC_TIMEOUT_S"),
    )

