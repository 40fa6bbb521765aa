class ProcessorError(Exception):
    """Base exception for all batch processing errors."""


class BatchNotFoundError(ProcessorError):
    """Raised when a batch cannot be found in the database."""


class SourceFileError(ProcessorError):
    """Raised when a batch's source file reference is missing or invalid."""


class LeaseLostError(ProcessorError):
    """Raised when the job running a batch was released before the batch was finished."""
