"""Upload service: chunk storage, status checks and merges over one upload root."""

import logging
from pathlib import Path
from typing import Optional, Union

from common.constants import DEFAULT_MERGE_CONCURRENCY
from common.types import MergeResult, UploadStatus
from chunkstore.chunk_storage import ChunkStore
from chunkstore.completeness import CompletenessOracle
from chunkstore.merge_engine import MergeEngine
from chunkstore.staging_fs import ByteSource, StagingFilesystem, run_blocking, validate_identity
from chunkstore.upload_state import UploadStateRegistry
from uploadserver import config

logger = logging.getLogger(__name__)


class UploadService:
    def __init__(
        self,
        upload_dir: Union[str, Path],
        merge_concurrency: int = DEFAULT_MERGE_CONCURRENCY,
        state_registry: Optional[UploadStateRegistry] = None,
    ):
        self.fs = StagingFilesystem(upload_dir)
        self.chunk_store = ChunkStore(self.fs)
        self.oracle = CompletenessOracle(self.fs, self.chunk_store)
        self.merge_engine = MergeEngine(self.fs, self.chunk_store, concurrency=merge_concurrency)
        self.state = state_registry or UploadStateRegistry()

    @property
    def upload_dir(self) -> Path:
        return self.fs.root

    async def ensure_storage(self) -> None:
        await run_blocking(self.fs.ensure_root)
        logger.info(f"Upload directory ready at {self.fs.root}")

    async def store_chunk(
        self,
        file_id: str,
        chunk_id: str,
        data: ByteSource,
        file_name: Optional[str] = None,
    ) -> bool:
        """
        Stage one chunk of a file.

        Waits while a merge of the same file is running. When the original
        filename is given and the file's artifact exists, the chunk is not
        written, so a late or retried upload cannot recreate a staging area
        for a finished file. Without a filename the artifact name is unknown
        and the chunk is staged unconditionally.

        Returns:
            True if the chunk was written, False if the file is already complete
        """
        validate_identity(file_id)
        validate_identity(chunk_id)

        async with self.state.writing(file_id):
            if file_name and await self.oracle.artifact_exists(file_id, file_name):
                logger.info(f"File {file_id} already merged, ignoring chunk {chunk_id}")
                return False
            return await self.chunk_store.store_chunk(file_id, chunk_id, data)

    async def check_status(self, file_id: str, file_name: str) -> UploadStatus:
        return await self.oracle.check_status(file_id, file_name)

    async def merge(self, file_id: str, file_name: str, chunk_size: int) -> MergeResult:
        """
        Merge the staged chunks of a file while holding it sealed.

        Chunk writes for the same file that arrive during the merge wait for
        it to finish; concurrent merges of the same file run one at a time
        and the later ones return the already-published artifact.
        """
        validate_identity(file_id)

        async with self.state.sealed(file_id):
            result = await self.merge_engine.merge(file_id, file_name, chunk_size)
            self.state.mark_merged(file_id)
            return result


def create_upload_service() -> UploadService:
    """
    Build an upload service from the current configuration.
    """
    return UploadService(
        upload_dir=config.UPLOAD_DIR,
        merge_concurrency=config.MERGE_CONCURRENCY,
    )
