"""Manages staged chunk blobs on disk: one staging directory per file identity."""

import logging
import uuid
from typing import List, Optional

from common.constants import CHUNK_TEMP_SUFFIX, TEMP_NAME_PREFIX
from chunkstore.exceptions import StorageError
from chunkstore.staging_fs import ByteSource, StagingFilesystem, run_blocking, validate_identity

logger = logging.getLogger(__name__)


class ChunkStore:
    """
    Persists chunks under <upload_root>/<file_id>/<chunk_id>.

    The staging directory is created lazily on the first chunk for a file
    and is owned by this store until a merge removes it. Re-uploading the
    same chunk identity replaces the previous blob wholesale.
    """

    def __init__(self, fs: StagingFilesystem):
        """
        Initialize store over a filesystem collaborator.

        Args:
            fs: StagingFilesystem rooted at the upload directory
        """
        self.fs = fs

    async def store_chunk(self, file_id: str, chunk_id: str, data: ByteSource) -> bool:
        """
        Write chunk data into the staging area of a file.

        Args:
            file_id: Identity of the whole file
            chunk_id: Identity of the chunk ('<anything>-<index>')
            data: Chunk bytes or a binary stream

        Returns:
            True once the chunk is durably stored

        Raises:
            InvalidIdentifierError: If either identity is not a safe storage name
            StorageError: If the write cannot complete
        """
        validate_identity(file_id)
        validate_identity(chunk_id)

        try:
            written = await run_blocking(self._write_chunk, file_id, chunk_id, data)
        except OSError as e:
            logger.error(f"Failed to store chunk {chunk_id} for file {file_id}: {e}")
            raise StorageError(f"Failed to store chunk {chunk_id}: {e}") from e

        logger.info(f"Stored chunk {chunk_id} for file {file_id} ({written} bytes)")
        return True

    def _write_chunk(self, file_id: str, chunk_id: str, data: ByteSource) -> int:
        self.fs.ensure_directory(file_id)
        temp_name = f"{TEMP_NAME_PREFIX}{chunk_id}.{uuid.uuid4().hex}{CHUNK_TEMP_SUFFIX}"
        try:
            written = self.fs.write_stream([file_id, temp_name], data)
            self.fs.move([file_id, temp_name], [file_id, chunk_id])
        except OSError:
            try:
                self.fs.delete_file(file_id, temp_name)
            except OSError as cleanup_error:
                logger.warning(f"Could not remove partial chunk {temp_name}: {cleanup_error}")
            raise
        return written

    async def list_chunks(self, file_id: str) -> List[str]:
        """
        List chunk identities staged for a file.

        Returns:
            Chunk identities, or an empty list if nothing is staged
        """
        validate_identity(file_id)
        try:
            entries = await run_blocking(self.fs.list_entries, file_id)
        except OSError as e:
            raise StorageError(f"Failed to list staging area for {file_id}: {e}") from e
        return [name for name in entries if not name.startswith(TEMP_NAME_PREFIX)]

    async def staging_exists(self, file_id: str) -> bool:
        """Check if a staging area exists for a file."""
        validate_identity(file_id)
        return await run_blocking(self.fs.is_directory, file_id)

    async def get_chunk_size(self, file_id: str, chunk_id: str) -> Optional[int]:
        """
        Get size of a staged chunk in bytes.

        Returns:
            Size in bytes, or None if the chunk doesn't exist
        """
        return await run_blocking(self.fs.file_size, file_id, chunk_id)

    async def delete_chunk(self, file_id: str, chunk_id: str) -> bool:
        """
        Delete one staged chunk.

        Returns:
            True if the chunk was deleted, False if it didn't exist
        """
        try:
            return await run_blocking(self.fs.delete_file, file_id, chunk_id)
        except OSError as e:
            raise StorageError(f"Failed to delete chunk {chunk_id}: {e}") from e

    async def clear_staging(self, file_id: str) -> bool:
        """
        Remove the staging area of a file with everything left in it.

        Returns:
            True if a staging area was removed, False if none existed
        """
        validate_identity(file_id)
        try:
            removed = await run_blocking(self.fs.delete_directory, file_id)
        except OSError as e:
            raise StorageError(f"Failed to remove staging area for {file_id}: {e}") from e
        if removed:
            logger.info(f"Removed staging area for file {file_id}")
        return removed
