# src/filereg/store/ipfs.py
from __future__ import annotations

import http.client
import json
import logging
import socket
import urllib.parse
from io import BytesIO
from typing import BinaryIO, Optional, Tuple

from filereg.context import CallContext
from filereg.errors import StoreError, StoreUnavailable
from filereg.event_log import log_event

_BOUNDARY = "----filereg-ipfs-boundary-5c1e0b8f2d7a4e91"
_CHUNK = 1024 * 256


def _send_chunk(conn: http.client.HTTPConnection, data: bytes) -> None:
    if not data:
        return
    conn.send(f"{len(data):X}\r\n".encode("ascii"))
    conn.send(data)
    conn.send(b"\r\n")


def _finish_chunks(conn: http.client.HTTPConnection) -> None:
    conn.send(b"0\r\n\r\n")


def parse_add_response(raw: bytes) -> Tuple[str, int]:
    """
    IPFS /api/v0/add returns NDJSON (one JSON per line).
    The last object describes the root node; we take its Hash + Size.
    """
    txt = raw.decode("utf-8", errors="replace").strip()
    if not txt:
        raise StoreError("ipfs add returned an empty response")

    last_obj: Optional[dict] = None
    for line in txt.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            obj = json.loads(line)
        except ValueError:
            continue
        if isinstance(obj, dict):
            last_obj = obj

    if not isinstance(last_obj, dict):
        raise StoreError(f"ipfs add returned an unreadable response: {txt[:200]}")

    cid = str(last_obj.get("Hash") or "").strip()
    try:
        size = int(str(last_obj.get("Size") or "0").strip())
    except ValueError:
        size = 0

    if not cid:
        raise StoreError(f"ipfs add response has no Hash: {last_obj!r}")

    return cid, size


class IpfsClient:
    """Kubo HTTP RPC client, add-only.

    One instance lives for the whole process. Each add opens its own
    connection and streams the body with chunked transfer encoding, so
    uploads are never buffered twice.
    """

    def __init__(self, api_url: str, *, pin: bool = True) -> None:
        u = urllib.parse.urlparse((api_url or "").strip())
        scheme = (u.scheme or "http").lower()
        if scheme not in {"http", "https"} or not u.hostname:
            raise ValueError(f"invalid IPFS API url: {api_url!r}")

        self.api_url = api_url.rstrip("/")
        self._scheme = scheme
        self._host = u.hostname
        self._port = int(u.port or (443 if scheme == "https" else 80))
        self._base_path = (u.path or "").rstrip("/")
        self._pin = bool(pin)
        self._logger = logging.getLogger("filereg.store.ipfs")

    def _connect(self, timeout: Optional[float]) -> http.client.HTTPConnection:
        if self._scheme == "https":
            return http.client.HTTPSConnection(self._host, self._port, timeout=timeout)
        return http.client.HTTPConnection(self._host, self._port, timeout=timeout)

    def _add_path(self) -> str:
        qs = urllib.parse.urlencode(
            {
                "pin": "true" if self._pin else "false",
                "wrap-with-directory": "false",
                "progress": "false",
            }
        )
        return f"{self._base_path}/api/v0/add?{qs}"

    def add_fileobj(self, fileobj: BinaryIO, *, name: str = "upload", ctx: Optional[CallContext] = None) -> Tuple[str, int]:
        """
        Stream a file-like object to IPFS. Returns (cid, size).

        No timeout is applied unless ctx carries a deadline.
        """
        ctx = ctx or CallContext.background()
        ctx.check("store_add")

        conn = self._connect(ctx.remaining())
        filename = (name or "upload").strip() or "upload"

        preamble = (
            f"--{_BOUNDARY}\r\n"
            f'Content-Disposition: form-data; name="file"; filename="{filename}"\r\n'
            f"Content-Type: application/octet-stream\r\n"
            f"\r\n"
        ).encode("utf-8")
        epilogue = f"\r\n--{_BOUNDARY}--\r\n".encode("utf-8")

        try:
            try:
                conn.putrequest("POST", self._add_path())
                conn.putheader("Content-Type", f"multipart/form-data; boundary={_BOUNDARY}")
                conn.putheader("Transfer-Encoding", "chunked")
                conn.endheaders()

                _send_chunk(conn, preamble)
                while True:
                    chunk = fileobj.read(_CHUNK)
                    if not chunk:
                        break
                    if isinstance(chunk, str):
                        chunk = chunk.encode("utf-8")
                    ctx.check("store_add")
                    _send_chunk(conn, chunk)
                _send_chunk(conn, epilogue)
                _finish_chunks(conn)

                resp = conn.getresponse()
                body = resp.read()
            except socket.timeout as e:
                # Deadline came from the caller's context.
                ctx.check("store_add")
                raise StoreUnavailable(f"ipfs add timed out: {e}", details={"url": self.api_url}) from e
            except OSError as e:
                raise StoreUnavailable(f"ipfs unreachable: {e}", details={"url": self.api_url}) from e
            except http.client.HTTPException as e:
                raise StoreError(f"ipfs protocol error: {e}", details={"url": self.api_url}) from e

            if resp.status < 200 or resp.status >= 300:
                msg = body.decode("utf-8", errors="replace").strip()
                raise StoreError(f"ipfs add failed: http {resp.status}: {msg[:300]}", details={"status": resp.status})

            cid, size = parse_add_response(body)
        finally:
            conn.close()

        log_event(self._logger, "ipfs_add", cid=cid, size=size, pinned=self._pin, level=logging.DEBUG)
        return cid, size

    def add(self, data: bytes, *, ctx: Optional[CallContext] = None) -> str:
        cid, _ = self.add_fileobj(BytesIO(data), ctx=ctx)
        return cid
