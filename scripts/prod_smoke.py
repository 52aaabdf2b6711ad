#!/usr/bin/env python3

"""End-to-end smoke test for filereg against live services.

Needs a reachable Ethereum node with the FileRegistry contract deployed,
an IPFS (Kubo) HTTP API, and a funded PRIVATE_KEY. Configuration is read
from the environment (or .env) exactly as the API server reads it.

It verifies:
  - the runtime boots (key parses, contract binding, ipfs client)
  - /v1/health reports ready
  - POST /v1/files returns a CID and a tx hash
  - GET /v1/files eventually returns the same CID once the tx is mined

Usage:
  python3 scripts/prod_smoke.py

Optional env overrides:
  FILEREG_SMOKE_PATH=smoke/test.txt
  FILEREG_SMOKE_WAIT_S=30
"""

from __future__ import annotations

import base64
import os
import time

from fastapi.testclient import TestClient

from filereg.api.app import create_app
from filereg.env import load_dotenv_if_present


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, str(default)))
    except ValueError:
        return float(default)


def main() -> int:
    load_dotenv_if_present()
    os.environ.setdefault("FILEREG_MODE", "dev")

    path = os.environ.get("FILEREG_SMOKE_PATH") or f"smoke/{int(time.time())}.txt"
    payload = f"filereg smoke {time.time()}".encode("utf-8")

    app = create_app(boot_runtime=True)
    c = TestClient(app)

    r = c.get("/v1/health")
    assert r.status_code == 200, r.text
    assert r.json().get("ready") is True, r.text

    r2 = c.post("/v1/files", json={"filePath": path, "file": base64.b64encode(payload).decode("ascii")})
    assert r2.status_code == 200, r2.text
    j2 = r2.json()
    cid = j2["cid"]
    assert cid, j2
    assert str(j2["txHash"]).startswith("0x"), j2

    # The save is only submitted; poll until it is mined.
    deadline = time.time() + _env_float("FILEREG_SMOKE_WAIT_S", 30.0)
    got = ""
    while time.time() < deadline:
        r3 = c.get("/v1/files", params={"filePath": path})
        assert r3.status_code == 200, r3.text
        got = r3.json().get("cid") or ""
        if got == cid:
            break
        time.sleep(1.0)

    if got != cid:
        raise RuntimeError(f"resolve did not return uploaded cid: path={path} want={cid} got={got!r}")

    print("OK: upload + resolve", {"path": path, "cid": cid, "tx_hash": j2["txHash"]})
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
