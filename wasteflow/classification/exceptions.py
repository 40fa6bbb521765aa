class ClassificationError(Exception):
    """Base exception for classification reference data and codes."""


class InvalidWasteCodeError(ClassificationError):
    """Raised when a written waste code cannot be parsed."""


class ReferenceDataError(ClassificationError):
    """Raised when a reference table cannot be loaded."""
