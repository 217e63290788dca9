"""Reassembles staged chunks into the final artifact and clears the staging area."""

import asyncio
import logging
from typing import List, Optional, Tuple

from common.constants import DEFAULT_MERGE_CONCURRENCY
from common.types import ChunkSlot, MergeResult
from chunkstore.chunk_order import plan_chunk_slots
from chunkstore.chunk_storage import ChunkStore
from chunkstore.completeness import artifact_name, temp_artifact_name
from chunkstore.exceptions import (
    InvalidChunkSizeError,
    MergeError,
    NotFoundError,
    StorageError
)
from chunkstore.staging_fs import StagingFilesystem, run_blocking

logger = logging.getLogger(__name__)


class MergeEngine:
    """
    Concatenates the chunks of one file in index order.

    Chunk i (by ascending embedded index) is copied to byte offset
    i * chunk_size of a temporary artifact. Copies run in parallel with at
    most `concurrency` in flight. Only when every copy has succeeded is the
    temporary artifact renamed onto the final name; after that the chunk
    blobs and the staging area are deleted. A failed copy discards the
    temporary artifact and leaves staging as it was, so the merge can be
    retried.
    """

    def __init__(
        self,
        fs: StagingFilesystem,
        chunk_store: ChunkStore,
        concurrency: int = DEFAULT_MERGE_CONCURRENCY
    ):
        if concurrency < 1:
            raise ValueError("Merge concurrency must be at least 1")
        self.fs = fs
        self.chunk_store = chunk_store
        self.concurrency = concurrency

    async def merge(self, file_id: str, file_name: str, chunk_size: int) -> MergeResult:
        """
        Merge all staged chunks of a file into its final artifact.

        Args:
            file_id: Identity of the whole file
            file_name: Original filename (its extension names the artifact)
            chunk_size: Size every chunk except the last was cut to

        Returns:
            MergeResult describing the artifact

        Raises:
            InvalidChunkSizeError: If chunk_size is not positive or a chunk is larger than it
            NotFoundError: If nothing is staged and no artifact exists
            InvalidIdentifierError: If a staged chunk identity has no index
            MergeError: If copying a chunk fails
            StorageError: If publishing or cleanup fails
        """
        if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size <= 0:
            raise InvalidChunkSizeError(f"Chunk size must be a positive integer, got {chunk_size!r}")

        final_name = artifact_name(file_id, file_name)

        existing_size = await run_blocking(self.fs.file_size, final_name)
        if existing_size is not None:
            logger.info(f"Artifact {final_name} already exists, skipping merge")
            return MergeResult(
                file_id=file_id,
                artifact_name=final_name,
                size=existing_size,
                chunk_count=0,
                already_merged=True,
            )

        if not await self.chunk_store.staging_exists(file_id):
            raise NotFoundError(f"Nothing to merge for file {file_id}, re-upload required")

        chunk_ids = await self.chunk_store.list_chunks(file_id)
        if not chunk_ids:
            raise NotFoundError(f"No chunks staged for file {file_id}, re-upload required")

        slots = plan_chunk_slots(chunk_ids, chunk_size)
        await self._check_chunk_sizes(file_id, slots, chunk_size)

        logger.info(
            f"Merging {len(slots)} chunks for file {file_id} into {final_name} "
            f"(chunk_size={chunk_size}, concurrency={self.concurrency})"
        )

        temp_name = temp_artifact_name(final_name)
        try:
            await run_blocking(self.fs.create_empty, temp_name)
        except OSError as e:
            raise StorageError(f"Failed to create artifact for {file_id}: {e}") from e

        semaphore = asyncio.Semaphore(self.concurrency)
        results = await asyncio.gather(
            *(self._copy_slot(semaphore, file_id, temp_name, slot) for slot in slots),
            return_exceptions=True
        )

        failure = self._first_failure(slots, results)
        if failure is not None:
            slot, error = failure
            await self._discard_temp(temp_name)
            logger.error(f"Merge of file {file_id} failed at chunk {slot.chunk_id}: {error}")
            raise MergeError(f"Failed to copy chunk {slot.chunk_id} into {final_name}: {error}") from error

        try:
            await run_blocking(self.fs.move, [temp_name], [final_name])
        except OSError as e:
            await self._discard_temp(temp_name)
            raise StorageError(f"Failed to publish artifact {final_name}: {e}") from e

        total_size = max(slot.offset + written for slot, written in zip(slots, results))
        logger.info(f"Published artifact {final_name} ({total_size} bytes)")

        await self._clear_chunks(semaphore, file_id, slots)

        return MergeResult(
            file_id=file_id,
            artifact_name=final_name,
            size=total_size,
            chunk_count=len(slots),
        )

    async def _check_chunk_sizes(self, file_id: str, slots: List[ChunkSlot], chunk_size: int) -> None:
        sizes = await asyncio.gather(
            *(self.chunk_store.get_chunk_size(file_id, slot.chunk_id) for slot in slots)
        )
        last = len(slots) - 1
        for position, (slot, size) in enumerate(zip(slots, sizes)):
            if size is None:
                raise NotFoundError(f"Chunk {slot.chunk_id} disappeared from staging area of {file_id}")
            if size > chunk_size:
                raise InvalidChunkSizeError(
                    f"Chunk {slot.chunk_id} is {size} bytes, larger than chunk size {chunk_size}"
                )
            if position < last and size != chunk_size:
                logger.warning(
                    f"Chunk {slot.chunk_id} of {file_id} is {size} bytes, short of chunk size {chunk_size}; "
                    f"its slot at offset {slot.offset} is left partly unwritten"
                )

    async def _copy_slot(
        self,
        semaphore: asyncio.Semaphore,
        file_id: str,
        temp_name: str,
        slot: ChunkSlot
    ) -> int:
        async with semaphore:
            return await run_blocking(self._copy_slot_sync, file_id, temp_name, slot)

    def _copy_slot_sync(self, file_id: str, temp_name: str, slot: ChunkSlot) -> int:
        stream = self.fs.open_read_stream(file_id, slot.chunk_id)
        try:
            written = self.fs.write_stream([temp_name], stream, start_offset=slot.offset)
        finally:
            stream.close()
        logger.debug(f"Copied chunk {slot.chunk_id} to offset {slot.offset} ({written} bytes)")
        return written

    @staticmethod
    def _first_failure(
        slots: List[ChunkSlot],
        results: list
    ) -> Optional[Tuple[ChunkSlot, BaseException]]:
        for slot, result in zip(slots, results):
            if isinstance(result, BaseException):
                return slot, result
        return None

    async def _discard_temp(self, temp_name: str) -> None:
        try:
            await run_blocking(self.fs.delete_file, temp_name)
        except OSError as e:
            logger.warning(f"Could not remove temporary artifact {temp_name}: {e}")

    async def _clear_chunks(self, semaphore: asyncio.Semaphore, file_id: str, slots: List[ChunkSlot]) -> None:
        async def delete(slot: ChunkSlot) -> bool:
            async with semaphore:
                return await self.chunk_store.delete_chunk(file_id, slot.chunk_id)

        results = await asyncio.gather(*(delete(slot) for slot in slots), return_exceptions=True)
        errors = [result for result in results if isinstance(result, BaseException)]
        if errors:
            logger.error(f"{len(errors)} chunks of {file_id} could not be deleted after merge: {errors[0]}")

        await self.chunk_store.clear_staging(file_id)
