"""Service layer for upload operations."""

from uploadserver.services.upload_service import UploadService, create_upload_service

__all__ = [
    "UploadService",
    "create_upload_service",
]
