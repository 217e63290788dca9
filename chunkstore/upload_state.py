"""Per-file upload state (uploading -> sealed -> merged) serializing merges against chunk writes."""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Dict, Optional

logger = logging.getLogger(__name__)


class FileState(str, Enum):
    UPLOADING = "uploading"
    SEALED = "sealed"
    MERGED = "merged"


@dataclass
class _FileEntry:
    state: FileState = FileState.UPLOADING
    writers: int = 0
    held: bool = False


class UploadStateRegistry:
    """
    Advisory, in-process state for each file identity with activity in flight.

    Any number of chunk writers may hold a file while it is uploading. A
    merge seals the file: new writers and other merges wait, and the seal
    is granted only once current writers have finished. Entries are dropped
    when idle, so the registry never holds session state that the staging
    directory does not already describe.
    """

    def __init__(self):
        self._condition = asyncio.Condition()
        self._entries: Dict[str, _FileEntry] = {}

    def state(self, file_id: str) -> Optional[FileState]:
        """Current state of a file, or None if nothing is in flight for it."""
        entry = self._entries.get(file_id)
        return entry.state if entry else None

    def active_writers(self, file_id: str) -> int:
        entry = self._entries.get(file_id)
        return entry.writers if entry else 0

    def _is_sealed(self, file_id: str) -> bool:
        entry = self._entries.get(file_id)
        return entry is not None and entry.held

    def _drop_if_idle(self, file_id: str, entry: _FileEntry) -> None:
        if self._entries.get(file_id) is entry and entry.writers == 0 and not entry.held:
            del self._entries[file_id]

    @asynccontextmanager
    async def writing(self, file_id: str) -> AsyncIterator[None]:
        """Hold a file as a chunk writer; waits while a merge has it sealed."""
        async with self._condition:
            if self._is_sealed(file_id):
                logger.info(f"Chunk write for {file_id} waiting for merge to finish")
            await self._condition.wait_for(lambda: not self._is_sealed(file_id))
            entry = self._entries.setdefault(file_id, _FileEntry())
            entry.writers += 1
        try:
            yield
        finally:
            async with self._condition:
                entry.writers -= 1
                self._drop_if_idle(file_id, entry)
                self._condition.notify_all()

    @asynccontextmanager
    async def sealed(self, file_id: str) -> AsyncIterator[None]:
        """Hold a file exclusively for a merge."""
        async with self._condition:
            await self._condition.wait_for(lambda: not self._is_sealed(file_id))
            entry = self._entries.setdefault(file_id, _FileEntry())
            entry.held = True
            entry.state = FileState.SEALED
            if entry.writers:
                logger.info(f"Merge for {file_id} waiting for {entry.writers} chunk writes to finish")
            try:
                await self._condition.wait_for(lambda: entry.writers == 0)
            except asyncio.CancelledError:
                entry.held = False
                entry.state = FileState.UPLOADING
                self._drop_if_idle(file_id, entry)
                self._condition.notify_all()
                raise
        try:
            yield
        finally:
            async with self._condition:
                entry.held = False
                if entry.state == FileState.SEALED:
                    entry.state = FileState.UPLOADING
                self._drop_if_idle(file_id, entry)
                self._condition.notify_all()

    def mark_merged(self, file_id: str) -> None:
        """Record that the artifact for a sealed file has been published."""
        entry = self._entries.get(file_id)
        if entry is not None:
            entry.state = FileState.MERGED
