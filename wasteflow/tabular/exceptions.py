class TableDecodeError(Exception):
    """Base exception for source files that cannot be decoded into rows."""


class EmptyTableError(TableDecodeError):
    """Raised when a decoded file holds no sheet or no data rows."""


class UnsupportedFormatError(TableDecodeError):
    """Raised when no decoder handles the file format."""
