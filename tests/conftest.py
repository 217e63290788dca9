"""Shared pytest fixtures for all tests."""

import hashlib
import random
from typing import List, Tuple

import pytest

from chunkstore.chunk_storage import ChunkStore
from chunkstore.staging_fs import StagingFilesystem
from uploadserver.services.upload_service import UploadService


def split_into_chunks(data: bytes, chunk_size: int, file_id: str) -> List[Tuple[str, bytes]]:
    """
    Split bytes the way a browser client does: '<file_id>-<index>' per slice.
    """
    chunks = []
    for index, start in enumerate(range(0, len(data), chunk_size)):
        chunks.append((f"{file_id}-{index}", data[start:start + chunk_size]))
    return chunks


def content_hash(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


@pytest.fixture
def upload_dir(tmp_path):
    """
    Create temporary upload root.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to temporary uploads directory
    """
    directory = tmp_path / 'uploads'
    directory.mkdir()
    return directory


@pytest.fixture
def staging_fs(upload_dir):
    return StagingFilesystem(upload_dir)


@pytest.fixture
def chunk_store(staging_fs):
    return ChunkStore(staging_fs)


@pytest.fixture
def upload_service(upload_dir):
    return UploadService(upload_dir, merge_concurrency=4)


@pytest.fixture
def sample_data():
    """
    Deterministic payload whose length is not a multiple of the test chunk size.
    """
    return random.Random(1337).randbytes(10 * 1024 + 123)


@pytest.fixture
def sample_file_id(sample_data):
    return content_hash(sample_data)
