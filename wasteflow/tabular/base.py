from abc import ABC, abstractmethod
from dataclasses import dataclass, field

RawRow = dict[str, object]


@dataclass
class DecodedTable:
    """Rows of a source file, keyed by header or by ``col_<i>``."""

    rows: list[RawRow] = field(default_factory=list)
    headers: list[str] = field(default_factory=list)
    has_header: bool = False
    delimiter: str | None = None


class BaseTableDecoder(ABC):
    """Contract for all source file decoders."""

    @abstractmethod
    def decode(self, data: bytes) -> DecodedTable:
        """Decode raw file bytes into rows.

        Args:
            data: Raw file content.

        Returns:
            The decoded rows in file order.

        Raises:
            TableDecodeError: if the content cannot be decoded.
            EmptyTableError: if the content holds no data rows.
        """
