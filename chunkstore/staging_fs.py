"""Named byte-blob operations under the upload root: create, list, read, write, move, delete."""

import asyncio
import functools
import os
import shutil
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, List, Optional, Union

from common.constants import STREAM_PIECE_SIZE_BYTES, TEMP_NAME_PREFIX
from chunkstore.exceptions import InvalidIdentifierError

ByteSource = Union[bytes, bytearray, memoryview, BinaryIO, Iterable[bytes]]

_FORBIDDEN_CHARS = ('/', '\\', '\x00')


def validate_identity(name: str) -> str:
    """
    Check a file or chunk identity supplied by a client.

    Identities follow validate_name() and must not start with the prefix
    reserved for in-progress temporary files.
    """
    validate_name(name)
    if name.startswith(TEMP_NAME_PREFIX):
        raise InvalidIdentifierError(f"Identity must not start with {TEMP_NAME_PREFIX!r}: {name!r}")
    return name


async def run_blocking(func, *args, **kwargs):
    """Run a blocking filesystem call in the default executor."""
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))


def validate_name(name: str) -> str:
    """
    Check that a name can be used as a single path component.

    Args:
        name: File identity, chunk identity or artifact name

    Returns:
        The name unchanged

    Raises:
        InvalidIdentifierError: If the name is empty, '.', '..' or contains a separator
    """
    if not isinstance(name, str) or name in ('', '.', '..'):
        raise InvalidIdentifierError(f"Invalid storage name: {name!r}")
    if any(ch in name for ch in _FORBIDDEN_CHARS):
        raise InvalidIdentifierError(f"Storage name must not contain path separators: {name!r}")
    return name


def iter_pieces(source: ByteSource, piece_size: int = STREAM_PIECE_SIZE_BYTES) -> Iterator[bytes]:
    """
    Yield the content of a byte source in pieces.

    Accepts raw bytes, a binary file-like object or an iterable of byte strings.
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        view = memoryview(source)
        for start in range(0, len(view), piece_size):
            yield bytes(view[start:start + piece_size])
        return

    if hasattr(source, 'read'):
        while True:
            piece = source.read(piece_size)
            if not piece:
                break
            yield piece
        return

    for piece in source:
        if piece:
            yield piece


class StagingFilesystem:
    """
    Filesystem collaborator rooted at one upload directory.

    Every name passed in is a single path component below the root; paths
    are joined with validate_name() so callers can never escape the root.
    All methods are blocking and raise OSError on storage failures.
    """

    def __init__(self, root: Union[str, Path], piece_size: int = STREAM_PIECE_SIZE_BYTES):
        self.root = Path(root)
        self.piece_size = piece_size

    def path(self, *names: str) -> Path:
        """Resolve names below the root."""
        target = self.root
        for name in names:
            target = target / validate_name(name)
        return target

    def ensure_root(self) -> None:
        """Ensure the upload root exists."""
        self.root.mkdir(parents=True, exist_ok=True)

    def ensure_directory(self, name: str) -> Path:
        """
        Create a directory below the root if absent.

        Concurrent callers racing on the same name all succeed.
        """
        directory = self.path(name)
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def exists(self, *names: str) -> bool:
        return self.path(*names).exists()

    def is_file(self, *names: str) -> bool:
        return self.path(*names).is_file()

    def is_directory(self, *names: str) -> bool:
        return self.path(*names).is_dir()

    def file_size(self, *names: str) -> Optional[int]:
        """
        Get size of a file in bytes.

        Returns:
            Size in bytes, or None if the file doesn't exist
        """
        target = self.path(*names)
        if target.is_file():
            return target.stat().st_size
        return None

    def list_entries(self, *names: str) -> List[str]:
        """
        List entry names in a directory.

        Returns:
            Sorted entry names, or an empty list if the directory doesn't exist
        """
        directory = self.path(*names)
        if not directory.is_dir():
            return []
        return sorted(entry.name for entry in directory.iterdir())

    def open_read_stream(self, *names: str) -> Iterator[bytes]:
        """
        Stream file data in pieces.

        Raises:
            FileNotFoundError: If the file does not exist
            OSError: If read operation fails
        """
        filepath = self.path(*names)
        with open(filepath, 'rb') as f:
            while True:
                piece = f.read(self.piece_size)
                if not piece:
                    break
                yield piece

    def create_empty(self, *names: str) -> Path:
        """Create (or truncate) a file so it can take positional writes."""
        filepath = self.path(*names)
        with open(filepath, 'wb'):
            pass
        return filepath

    def write_stream(
        self,
        names: Iterable[str],
        source: ByteSource,
        start_offset: Optional[int] = None
    ) -> int:
        """
        Write a byte source to a file.

        Args:
            names: Path components below the root
            source: Bytes, binary stream or iterable of byte pieces
            start_offset: None replaces the whole file; an integer writes
                in place at that offset of an existing file, leaving other
                byte ranges untouched

        Returns:
            Number of bytes written

        Raises:
            OSError: If write operation fails
        """
        filepath = self.path(*names)
        mode = 'wb' if start_offset is None else 'r+b'
        written = 0
        with open(filepath, mode) as f:
            if start_offset:
                f.seek(start_offset)
            for piece in iter_pieces(source, self.piece_size):
                f.write(piece)
                written += len(piece)
            f.flush()
            os.fsync(f.fileno())
        return written

    def move(self, source: Iterable[str], destination: Iterable[str]) -> None:
        """Atomically rename a file, replacing the destination if present."""
        os.replace(self.path(*source), self.path(*destination))

    def delete_file(self, *names: str) -> bool:
        """
        Delete a file.

        Returns:
            True if file was deleted, False if it didn't exist
        """
        filepath = self.path(*names)
        try:
            filepath.unlink()
        except FileNotFoundError:
            return False
        return True

    def delete_directory(self, *names: str) -> bool:
        """
        Delete a directory and everything below it.

        Returns:
            True if the directory was deleted, False if it didn't exist
        """
        directory = self.path(*names)
        if not directory.exists():
            return False
        shutil.rmtree(directory)
        return True
