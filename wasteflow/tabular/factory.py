from pathlib import PurePosixPath

from wasteflow.tabular.base import BaseTableDecoder
from wasteflow.tabular.delimited_decoder import DelimitedTableDecoder
from wasteflow.tabular.exceptions import UnsupportedFormatError
from wasteflow.tabular.spreadsheet_decoder import SpreadsheetTableDecoder

# Workbooks are zip archives.
_ZIP_MAGIC = b"PK\x03\x04"


class TableDecoderFactory:
    """Picks the decoder for a source file from its name, then its content."""

    DECODERS: dict[str, type[BaseTableDecoder]] = {
        ".xlsx": SpreadsheetTableDecoder,
        ".xlsm": SpreadsheetTableDecoder,
        ".csv": DelimitedTableDecoder,
        ".tsv": DelimitedTableDecoder,
        ".txt": DelimitedTableDecoder,
    }

    @classmethod
    def create(cls, filename: str | None, data: bytes = b"") -> BaseTableDecoder:
        suffix = PurePosixPath(filename or "").suffix.lower()
        decoder_cls = cls.DECODERS.get(suffix)
        if decoder_cls is not None:
            return decoder_cls()
        if data.startswith(_ZIP_MAGIC):
            return SpreadsheetTableDecoder()
        if suffix:
            raise UnsupportedFormatError(
                f"Unsupported source file type '{suffix}'. Choose from: {list(cls.DECODERS)}"
            )
        return DelimitedTableDecoder()
