# src/filereg/api/routes_public_parts/files.py
from __future__ import annotations

import base64
import binascii

from fastapi import APIRouter, Request

from filereg.api.errors import ApiError
from filereg.api.routes_public_parts.common import _call_context, _registry
from filereg.api.schemas import FileResolveResponse, FileUploadRequest, FileUploadResponse

router = APIRouter()


def _decode_b64(data: str) -> bytes:
    # Standard alphabet with padding; line breaks from wrapped encoders are dropped first.
    data = data.replace("\r", "").replace("\n", "")
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ApiError.bad_request("invalid_base64", f"Invalid base64 data: {e}")


@router.post("/files", response_model=FileUploadResponse)
def upload_file(request: Request, body: FileUploadRequest) -> FileUploadResponse:
    """Store the file in the content store, then record filePath -> CID on-chain.

    Returns:
      { cid, txHash }  (txHash means accepted by the node, not final)
    """
    if not body.filePath:
        raise ApiError.bad_request("invalid_input", "Missing filePath")
    content = _decode_b64(body.file)

    res = _registry(request).upload(body.filePath, content, ctx=_call_context(request))
    return FileUploadResponse(cid=res.cid, txHash=res.tx_hash)


@router.get("/files", response_model=FileResolveResponse)
def resolve_file(request: Request, filePath: str = "") -> FileResolveResponse:
    """Return the CID recorded for filePath.

    An unknown path returns {"cid": ""}, same as a path saved with an empty CID.
    """
    if not filePath:
        raise ApiError.bad_request("invalid_input", "Missing filePath query parameter")

    cid = _registry(request).resolve(filePath, ctx=_call_context(request))
    return FileResolveResponse(cid=cid)
