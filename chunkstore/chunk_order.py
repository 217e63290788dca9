"""Chunk ordering: extract the integer index suffix of a chunk identity and sort numerically."""

import functools
import logging
import re
from collections import Counter
from typing import Iterable, List

from common.types import ChunkSlot
from chunkstore.exceptions import InvalidIdentifierError

logger = logging.getLogger(__name__)

_INDEX_SUFFIX = re.compile(r'-(\d+)$')


def extract_chunk_index(chunk_id: str) -> int:
    """
    Extract the integer index embedded in a chunk identity.

    Args:
        chunk_id: Chunk identity of the form '<anything>-<integer-index>'

    Returns:
        The integer index

    Raises:
        InvalidIdentifierError: If the identity has no integer suffix
    """
    match = _INDEX_SUFFIX.search(chunk_id)
    if match is None:
        raise InvalidIdentifierError(
            f"Chunk identity {chunk_id!r} has no '-<index>' suffix"
        )
    return int(match.group(1))


def compare_chunk_ids(left: str, right: str) -> int:
    """
    Compare two chunk identities by embedded index.

    Returns a negative number, zero or a positive number like a classic
    comparator. Identities with equal indices fall back to string order so
    the result is deterministic.
    """
    difference = extract_chunk_index(left) - extract_chunk_index(right)
    if difference:
        return difference
    return (left > right) - (left < right)


def sort_chunk_ids(chunk_ids: Iterable[str]) -> List[str]:
    """Sort chunk identities by ascending numeric index ('x-9' before 'x-10')."""
    return sorted(chunk_ids, key=functools.cmp_to_key(compare_chunk_ids))


def find_index_gaps(indices: List[int]) -> List[int]:
    """Indices missing between the lowest and highest of an ascending index list."""
    if not indices:
        return []
    return sorted(set(range(indices[0], indices[-1] + 1)) - set(indices))


def plan_chunk_slots(chunk_ids: Iterable[str], chunk_size: int) -> List[ChunkSlot]:
    """
    Order chunk identities and assign each its byte offset in the artifact.

    The chunk at ordinal i starts at i * chunk_size, whatever its embedded
    index. Gaps and repeated indices are merged as supplied and only logged.

    Raises:
        InvalidIdentifierError: If an identity has no integer suffix
    """
    ordered = sort_chunk_ids(chunk_ids)
    indices = [extract_chunk_index(chunk_id) for chunk_id in ordered]

    duplicates = sorted(index for index, count in Counter(indices).items() if count > 1)
    if duplicates:
        logger.warning(f"Chunk indices staged more than once under different identities: {duplicates}")

    missing = find_index_gaps(indices)
    if missing:
        logger.warning(f"Chunk indices missing from the staged sequence: {missing}")

    return [
        ChunkSlot(
            chunk_id=chunk_id,
            chunk_index=index,
            ordinal=ordinal,
            offset=ordinal * chunk_size,
        )
        for ordinal, (chunk_id, index) in enumerate(zip(ordered, indices))
    ]
