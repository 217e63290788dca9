"""Shared data type definitions (UploadStatus, MergeResult, ChunkSlot)."""

from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class UploadStatus:
    """
    Result of a completeness check for one file identity.
    """
    needs_upload: bool
    existing_chunk_ids: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ChunkSlot:
    """
    A staged chunk placed at its position in the final artifact.
    """
    chunk_id: str
    chunk_index: int
    ordinal: int
    offset: int


@dataclass(frozen=True)
class MergeResult:
    """
    Outcome of a merge request.
    """
    file_id: str
    artifact_name: str
    size: int
    chunk_count: int
    already_merged: bool = False
