from __future__ import annotations

import base64
import json
import logging

import pytest
from fastapi.testclient import TestClient

from filereg.api.app import create_app
from filereg.errors import StoreUnavailable
from filereg.registry import FileRegistry
from filereg.testing.fakes import InMemoryContentStore, InMemoryLedger, fake_cid, rejecting_ledger, unreachable_ledger


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _client(auth, *, store=None, ledger=None) -> TestClient:
    app = create_app(boot_runtime=False)
    app.state.registry = FileRegistry(
        store=store if store is not None else InMemoryContentStore(),
        ledger=ledger if ledger is not None else InMemoryLedger(),
        auth=auth,
    )
    return TestClient(app)


def test_upload_and_get_roundtrip(auth) -> None:
    c = _client(auth)

    r = c.post("/v1/files", json={"filePath": "/test/file.txt", "file": _b64(b"Hello World!")})
    assert r.status_code == 200
    j = r.json()
    assert j["cid"] == fake_cid(b"Hello World!")
    assert j["txHash"].startswith("0x")

    r2 = c.get("/v1/files", params={"filePath": "/test/file.txt"})
    assert r2.status_code == 200
    assert r2.json() == {"cid": j["cid"]}


def test_upload_invalid_base64_is_400(auth) -> None:
    store = InMemoryContentStore()
    c = _client(auth, store=store)

    r = c.post("/v1/files", json={"filePath": "/test/file.txt", "file": "!!!notbase64!!!"})
    assert r.status_code == 400
    j = r.json()
    assert j["ok"] is False
    assert j["error"]["code"] == "invalid_base64"
    assert "Invalid base64 data" in j["error"]["message"]
    assert store.calls == []


def test_upload_missing_file_path_is_400(auth) -> None:
    store = InMemoryContentStore()
    c = _client(auth, store=store)

    r = c.post("/v1/files", json={"file": _b64(b"Hello World!")})
    assert r.status_code == 400
    assert "Missing filePath" in r.json()["error"]["message"]
    assert store.calls == []


def test_upload_malformed_json_is_400(auth) -> None:
    c = _client(auth)

    r = c.post("/v1/files", content=b"{not json", headers={"content-type": "application/json"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "bad_request"


def test_upload_store_failure_is_500_and_no_ledger_write(auth) -> None:
    ledger = InMemoryLedger()
    store = InMemoryContentStore(fail_with=StoreUnavailable("ipfs unreachable: connection refused"))
    c = _client(auth, store=store, ledger=ledger)

    r = c.post("/v1/files", json={"filePath": "/a.txt", "file": _b64(b"x")})
    assert r.status_code == 500
    err = r.json()["error"]
    assert err["code"] == "store_unavailable"
    assert "connection refused" in err["message"]
    assert ledger.saves == []


def test_upload_contract_failure_is_500_and_path_stays_unresolved(auth) -> None:
    ledger = rejecting_ledger("contract save failed")
    c = _client(auth, ledger=ledger)

    r = c.post("/v1/files", json={"filePath": "/test/file.txt", "file": _b64(b"Hello World!")})
    assert r.status_code == 500
    err = r.json()["error"]
    assert err["code"] == "submission_error"
    assert "contract save failed" in err["message"]

    r2 = c.get("/v1/files", params={"filePath": "/test/file.txt"})
    assert r2.status_code == 200
    assert r2.json()["cid"] == ""


def test_get_missing_file_path_is_400(auth) -> None:
    ledger = InMemoryLedger()
    c = _client(auth, ledger=ledger)

    r = c.get("/v1/files")
    assert r.status_code == 400
    assert "Missing filePath query parameter" in r.json()["error"]["message"]
    assert ledger.gets == []


def test_get_contract_failure_is_500(auth) -> None:
    c = _client(auth, ledger=unreachable_ledger("contract get failed"))

    r = c.get("/v1/files", params={"filePath": "/test/file.txt"})
    assert r.status_code == 500
    err = r.json()["error"]
    assert err["code"] == "query_error"
    assert "contract get failed" in err["message"]


def test_get_unknown_path_returns_empty_cid(auth) -> None:
    c = _client(auth)

    r = c.get("/v1/files", params={"filePath": "/unknown/path.txt"})
    assert r.status_code == 200
    assert r.json() == {"cid": ""}


def test_request_size_limit_returns_413(auth, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FILEREG_MAX_REQUEST_BYTES", "128")
    store = InMemoryContentStore()
    c = _client(auth, store=store)

    r = c.post("/v1/files", json={"filePath": "/big.bin", "file": _b64(b"x" * 500)})
    assert r.status_code == 413
    assert r.json()["error"]["code"] == "request_too_large"
    assert store.calls == []


def test_request_timeout_applies_deadline(auth, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FILEREG_REQUEST_TIMEOUT_S", "5")
    app = create_app(boot_runtime=False)
    assert app.state.settings.request_timeout_s == 5.0

    seen = []

    class _RecordingStore(InMemoryContentStore):
        def add(self, data, *, ctx=None):
            seen.append(ctx.remaining())
            return super().add(data, ctx=ctx)

    app.state.registry = FileRegistry(store=_RecordingStore(), ledger=InMemoryLedger(), auth=auth)
    r = TestClient(app).post("/v1/files", json={"filePath": "/a", "file": _b64(b"a")})
    assert r.status_code == 200
    assert seen and 0.0 < seen[0] <= 5.0


def test_request_id_is_echoed(auth) -> None:
    c = _client(auth)

    r = c.get("/v1/files", params={"filePath": "/x"}, headers={"x-request-id": "req-123"})
    assert r.headers.get("x-request-id") == "req-123"


def test_malformed_request_id_is_replaced(auth) -> None:
    c = _client(auth)

    r = c.get("/v1/files", params={"filePath": "/x"}, headers={"x-request-id": "bad id {with} spaces"})
    rid = r.headers.get("x-request-id")
    assert rid and rid != "bad id {with} spaces"
    assert len(rid) == 32


def test_request_id_reaches_registry_events(auth, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="filereg")
    c = _client(auth)

    r = c.post(
        "/v1/files",
        json={"filePath": "/docs/a.txt", "file": _b64(b"a")},
        headers={"x-request-id": "req-upload-1"},
    )
    assert r.status_code == 200

    events = {}
    for rec in caplog.records:
        if rec.name in {"filereg.registry", "filereg.http"}:
            j = json.loads(rec.getMessage())
            events[j["event"]] = j
    assert events["upload_stored"]["request_id"] == "req-upload-1"
    assert events["upload_recorded"]["request_id"] == "req-upload-1"
    assert events["http_request"]["request_id"] == "req-upload-1"
    assert events["http_request"]["status"] == 200


def test_upload_path_with_lone_surrogate_is_400(auth) -> None:
    store = InMemoryContentStore()
    ledger = InMemoryLedger()
    c = _client(auth, store=store, ledger=ledger)

    r = c.post(
        "/v1/files",
        content=b'{"filePath": "/a\\ud800", "file": "eA=="}',
        headers={"content-type": "application/json"},
    )
    assert r.status_code == 400
    assert r.headers["content-type"].startswith("application/json")
    assert r.json()["ok"] is False
    assert store.calls == []
    assert ledger.saves == []


def test_upload_accepts_line_wrapped_base64(auth) -> None:
    c = _client(auth)

    r = c.post("/v1/files", json={"filePath": "/wrapped.txt", "file": "SGVs\r\nbG8="})
    assert r.status_code == 200
    assert r.json()["cid"] == fake_cid(b"Hello")


def test_health_reports_readiness(auth) -> None:
    app = create_app(boot_runtime=False)
    c = TestClient(app)
    assert c.get("/v1/health").json() == {"ok": True, "ready": False}

    r = c.get("/v1/files", params={"filePath": "/x"})
    assert r.status_code == 500
    assert r.json()["error"]["code"] == "not_ready"

    app.state.registry = FileRegistry(store=InMemoryContentStore(), ledger=InMemoryLedger(), auth=auth)
    assert c.get("/v1/health").json() == {"ok": True, "ready": True}
