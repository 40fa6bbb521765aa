class StorageError(Exception):
    """Base exception for object store errors."""


class ObjectNotFoundError(StorageError):
    """Raised when a reference points to no stored object."""


class InvalidObjectRefError(StorageError):
    """Raised when a reference does not belong to the configured bucket."""


class UnsupportedStorageBackendError(StorageError):
    """Raised when settings name an unknown storage backend."""
