"""Custom exception classes for chunk staging and reassembly."""


class UploadException(Exception):
    """
    Base exception class for all upload-related errors.
    """
    pass


class StorageError(UploadException, OSError):
    """
    Raised when an underlying storage operation fails (disk full, permissions).
    """
    pass


class MergeError(StorageError):
    """
    Raised when copying a chunk into the artifact fails during a merge.
    """
    pass


class NotFoundError(UploadException):
    """
    Raised when a merge is requested but nothing is staged and no artifact exists.
    """
    pass


class InvalidIdentifierError(UploadException, ValueError):
    """
    Raised when a file or chunk identity cannot be used as a storage name,
    or a chunk identity carries no integer index.
    """
    pass


class InvalidChunkSizeError(UploadException, ValueError):
    """
    Raised when a merge is requested with a non-positive chunk size, or a
    staged chunk is larger than the chunk size and would overlap the next one.
    """
    pass

