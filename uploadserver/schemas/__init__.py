"""Pydantic schemas for API requests and responses."""

from uploadserver.schemas.upload import (
    VerifyRequest,
    VerifyData,
    VerifyResponse,
    UploadData,
    UploadResponse,
    MergeRequest,
    MergeData,
    MergeResponse
)
from uploadserver.schemas.common import ErrorData, ErrorResponse, StatusResponse

__all__ = [
    "VerifyRequest",
    "VerifyData",
    "VerifyResponse",
    "UploadData",
    "UploadResponse",
    "MergeRequest",
    "MergeData",
    "MergeResponse",
    "ErrorData",
    "ErrorResponse",
    "StatusResponse"
]
