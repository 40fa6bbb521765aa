class BatchError(Exception):
    """Base exception for batch lifecycle errors."""


class InvalidTransitionError(BatchError):
    """Raised when a status change is not allowed from the current status."""


class StaleBatchStateError(BatchError):
    """Raised when a conditional status update matched no row."""


class UploadNotFoundError(BatchError):
    """Raised when a confirmed upload is not present in the object store."""
