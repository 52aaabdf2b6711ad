# src/filereg/api/schemas.py
"""Pydantic request/response schemas for the files API.

Field names follow the wire format (camelCase) used by existing clients.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class FileUploadRequest(BaseModel):
    filePath: str = Field(default="", description="Logical path the CID is recorded under")
    file: str = Field(default="", description="File content, standard base64")

    model_config = {"extra": "ignore"}


class FileUploadResponse(BaseModel):
    cid: str
    txHash: str


class FileResolveResponse(BaseModel):
    cid: str
