"""Completeness checks: does the final artifact exist, and which chunks are already staged."""

import logging

from common.constants import ARTIFACT_TEMP_SUFFIX, TEMP_NAME_PREFIX
from common.types import UploadStatus
from chunkstore.chunk_storage import ChunkStore
from chunkstore.staging_fs import StagingFilesystem, run_blocking, validate_identity, validate_name

logger = logging.getLogger(__name__)


def extract_ext(file_name: str) -> str:
    """
    Extract the extension of an original filename, dot included.

    Only the last path component counts; a name without a dot has no
    extension ('archive.tar.gz' -> '.gz', 'README' -> '').
    """
    base_name = file_name.replace('\\', '/').rsplit('/', 1)[-1]
    dot = base_name.rfind('.')
    if dot == -1:
        return ''
    return base_name[dot:]


def artifact_name(file_id: str, file_name: str) -> str:
    """Name of the final artifact for a file: '<file_id><ext>'."""
    validate_identity(file_id)
    return validate_name(f"{file_id}{extract_ext(file_name)}")


def temp_artifact_name(final_name: str) -> str:
    """Name a merge writes to before publishing the final artifact."""
    return f"{TEMP_NAME_PREFIX}{final_name}{ARTIFACT_TEMP_SUFFIX}"


class CompletenessOracle:
    """
    Answers whether a file still needs uploading.

    Pure reads over the upload root; safe to call while a merge for the
    same file is running.
    """

    def __init__(self, fs: StagingFilesystem, chunk_store: ChunkStore):
        self.fs = fs
        self.chunk_store = chunk_store

    async def artifact_exists(self, file_id: str, file_name: str) -> bool:
        name = artifact_name(file_id, file_name)
        return await run_blocking(self.fs.is_file, name)

    async def check_status(self, file_id: str, file_name: str) -> UploadStatus:
        """
        Report whether an upload is needed and which chunks already exist.

        Args:
            file_id: Identity of the whole file
            file_name: Original filename (only its extension is used)

        Returns:
            UploadStatus with needs_upload False when the artifact exists,
            otherwise True plus the staged chunk identities
        """
        if await self.artifact_exists(file_id, file_name):
            logger.debug(f"Artifact for {file_id} already exists, upload not needed")
            return UploadStatus(needs_upload=False)

        existing = await self.chunk_store.list_chunks(file_id)
        logger.debug(f"File {file_id} needs upload, {len(existing)} chunks already staged")
        return UploadStatus(needs_upload=True, existing_chunk_ids=existing)
