# src/filereg/boot.py
from __future__ import annotations

import logging
from typing import Optional

from filereg.config import ApiSettings, RegistryConfig, load_api_settings, load_registry_config
from filereg.event_log import log_event
from filereg.ledger.binding import FileRegistryBinding
from filereg.ledger.signer import TransactionSigner
from filereg.registry import FileRegistry
from filereg.store.ipfs import IpfsClient

log = logging.getLogger("filereg.boot")


def build_registry(
    cfg: Optional[RegistryConfig] = None,
    settings: Optional[ApiSettings] = None,
) -> FileRegistry:
    """Construct the process-wide FileRegistry.

    Any failure here (config, key, chain binding, ABI) is fatal to startup.
    """
    cfg = cfg or load_registry_config()
    settings = settings or load_api_settings()

    log_event(
        log,
        "registry_config",
        contract=cfg.contract_address,
        eth_rpc_url=cfg.eth_rpc_url,
        ipfs_url=cfg.ipfs_url,
        port=cfg.port,
        chain_id=cfg.chain_id,
    )

    auth = TransactionSigner(cfg.private_key, cfg.chain_id).authorize()
    ledger = FileRegistryBinding.connect(
        cfg.eth_rpc_url,
        cfg.contract_address,
        timeout_s=settings.eth_rpc_timeout_s,
    )
    store = IpfsClient(cfg.ipfs_url)

    log_event(log, "registry_ready", signer=auth.address, contract=ledger.address)
    return FileRegistry(store=store, ledger=ledger, auth=auth)
