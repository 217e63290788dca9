"""Common schemas used across multiple endpoints."""

from typing import Optional
from pydantic import BaseModel


class ErrorData(BaseModel):
    """Machine-readable part of an error response."""
    code: str


class ErrorResponse(BaseModel):
    """Response model for errors."""
    ok: bool = False
    msg: str
    data: ErrorData


class StatusResponse(BaseModel):
    """Response model for liveness endpoints."""
    status: str
    service: Optional[str] = None
