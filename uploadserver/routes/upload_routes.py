"""Chunk upload, verify and merge API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from uploadserver.schemas.upload import (
    MergeData,
    MergeRequest,
    MergeResponse,
    UploadData,
    UploadResponse,
    VerifyData,
    VerifyRequest,
    VerifyResponse
)
from uploadserver.services.upload_service import UploadService

router = APIRouter(tags=["Uploads"])


def get_upload_service(request: Request) -> UploadService:
    """Upload service created at application startup."""
    return request.app.state.upload_service


@router.post("/upload", response_model=UploadResponse)
async def upload_chunk(
    file_hash: str = Form(..., alias="fileHash"),
    chunk_hash: str = Form(..., alias="chunkHash"),
    chunk: UploadFile = File(...),
    file_name: Optional[str] = Form(None, alias="fileName"),
    upload_service: UploadService = Depends(get_upload_service)
):
    """
    Store one chunk of a file.

    Parameters:
        - fileHash: Content hash of the whole file
        - chunkHash: Chunk identity, '<anything>-<index>'
        - chunk: Chunk bytes (multipart/form-data)
        - fileName: Original filename (optional)

    Returns:
        - stored: False when fileName is given, the file was already merged and the chunk was ignored

    Raises:
        - 400: Unsafe file or chunk identity
        - 422: Missing form fields
        - 500: Storage failure
    """
    try:
        stored = await upload_service.store_chunk(
            file_id=file_hash,
            chunk_id=chunk_hash,
            data=chunk.file,
            file_name=file_name,
        )
    finally:
        await chunk.close()

    return UploadResponse(
        msg="upload succeeded" if stored else "file already uploaded",
        data=UploadData(file_hash=file_hash, chunk_hash=chunk_hash, stored=stored),
    )


@router.post("/verify", response_model=VerifyResponse, response_model_exclude_none=True)
async def verify_upload(
    request: VerifyRequest,
    upload_service: UploadService = Depends(get_upload_service)
):
    """
    Check whether a file still needs uploading.

    Parameters:
        - fileHash: Content hash of the whole file
        - fileName: Original filename

    Returns:
        - shouldUpload: False when the merged file already exists
        - existChunks: Chunk identities already stored (only when shouldUpload)

    Raises:
        - 400: Unsafe file identity
        - 500: Storage failure
    """
    status = await upload_service.check_status(request.file_hash, request.file_name)

    if not status.needs_upload:
        return VerifyResponse(data=VerifyData(should_upload=False))

    return VerifyResponse(
        data=VerifyData(should_upload=True, exist_chunks=status.existing_chunk_ids)
    )


@router.post("/merge", response_model=MergeResponse)
async def merge_chunks(
    request: MergeRequest,
    upload_service: UploadService = Depends(get_upload_service)
):
    """
    Merge all uploaded chunks of a file.

    Parameters:
        - fileHash: Content hash of the whole file
        - fileName: Original filename
        - size: Chunk size the file was split with

    Returns:
        - artifact: Name of the merged file
        - size: Merged file size in bytes
        - alreadyMerged: True when the file existed before this call

    Raises:
        - 400: Invalid chunk size, oversized chunk or identity
        - 404: No chunks uploaded, re-upload required
        - 500: Merge or storage failure
    """
    result = await upload_service.merge(request.file_hash, request.file_name, request.size)

    return MergeResponse(
        msg="merge succeeded",
        data=MergeData(
            file_hash=result.file_id,
            artifact=result.artifact_name,
            size=result.size,
            chunk_count=result.chunk_count,
            already_merged=result.already_merged,
        ),
    )
