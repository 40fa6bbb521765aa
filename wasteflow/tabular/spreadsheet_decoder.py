import io
import zipfile

import pandas as pd

from wasteflow.tabular.base import BaseTableDecoder, DecodedTable
from wasteflow.tabular.exceptions import EmptyTableError, TableDecodeError
from wasteflow.tabular.rows import build_table


class SpreadsheetTableDecoder(BaseTableDecoder):
    """First sheet of an .xlsx/.xlsm workbook, read cell by cell."""

    def decode(self, data: bytes) -> DecodedTable:
        try:
            xls = pd.ExcelFile(io.BytesIO(data), engine="openpyxl")
        except (ValueError, OSError, KeyError, zipfile.BadZipFile) as exc:
            raise TableDecodeError(f"Unreadable workbook: {exc}") from exc

        with xls:
            if not xls.sheet_names:
                raise EmptyTableError("Workbook has no sheet")
            sheet_name = str(xls.sheet_names[0])
            # Raw read: header detection happens on the grid, like delimited files.
            df = xls.parse(xls.sheet_names[0], header=None, dtype=object)

        grid = [
            [None if pd.isna(value) else value for value in record]
            for record in df.itertuples(index=False, name=None)
        ]
        table = build_table(grid)
        if not table.rows:
            raise EmptyTableError(f"Sheet '{sheet_name}' holds no data rows")
        return table
