"""Pydantic schemas for chunk upload, verify and merge endpoints.

Field aliases keep the camelCase wire names browser clients send.
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class VerifyRequest(WireModel):
    """Request model for checking whether a file needs uploading."""
    file_hash: str = Field(alias="fileHash")
    file_name: str = Field(alias="fileName")


class VerifyData(WireModel):
    should_upload: bool = Field(alias="shouldUpload")
    exist_chunks: Optional[List[str]] = Field(default=None, alias="existChunks")


class VerifyResponse(WireModel):
    """Response model for verify."""
    ok: bool = True
    msg: str = ""
    data: VerifyData


class UploadData(WireModel):
    file_hash: str = Field(alias="fileHash")
    chunk_hash: str = Field(alias="chunkHash")
    stored: bool


class UploadResponse(WireModel):
    """Response model for chunk upload."""
    ok: bool = True
    msg: str
    data: UploadData


class MergeRequest(WireModel):
    """Request model for merging uploaded chunks.

    `size` is the chunk size the file was split with, not the file size.
    """
    file_hash: str = Field(alias="fileHash")
    file_name: str = Field(alias="fileName")
    size: int


class MergeData(WireModel):
    file_hash: str = Field(alias="fileHash")
    artifact: str
    size: int
    chunk_count: int = Field(alias="chunkCount")
    already_merged: bool = Field(alias="alreadyMerged")


class MergeResponse(WireModel):
    """Response model for merge."""
    ok: bool = True
    msg: str
    data: MergeData
