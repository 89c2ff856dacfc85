import logging
from decimal import Decimal

from openpyxl import Workbook
from openpyxl.cell.rich_text import CellRichText
from openpyxl.worksheet.formula import ArrayFormula
from openpyxl.worksheet.worksheet import Worksheet

from formula_refs.ast import CellReference, RangeReference, ReferenceNode
from formula_refs.errors import ReferenceNotFound
from formula_refs.types import ErrorValue, ExcelValue, ScalarExcelValue
from formula_refs.utils import MAX_COL, MAX_ROW, column_as_str

logger = logging.getLogger(__name__)

EXCEL_ERRORS = {"#NULL!", "#DIV/0!", "#VALUE!", "#REF!", "#NAME?", "#NUM!", "#N/A"}


class WorkbookLookup:
    """Serve reference values from an openpyxl workbook.

    Unqualified references are read from `current_sheet` (the active sheet by
    default). Stored values are returned as-is: formulas are not recalculated.
    Ranges always come back as 2D arrays, one list per row.
    """

    def __init__(
        self,
        workbook: Workbook,
        current_sheet: str | Worksheet | None = None,
        max_row: int = MAX_ROW,
        max_col: int = MAX_COL,
    ):
        self.workbook = workbook
        self.current_sheet = current_sheet
        self.max_row = max_row
        self.max_col = max_col

    def retrieve_ref(self, node: ReferenceNode) -> ExcelValue:
        ref = node.ref
        sheet = self._get_sheet(ref.sheet)
        if isinstance(ref, CellReference):
            self._check_bounds(ref.row, ref.col, sheet)
            return self._read_cell(sheet, ref.row, ref.col)
        return self._read_range(sheet, ref)

    def _get_sheet(self, sheet: str | None) -> Worksheet:
        target = sheet if sheet is not None else self.current_sheet
        if target is None:
            active = self.workbook.active
            if not isinstance(active, Worksheet):
                raise ReferenceNotFound("Workbook has no active worksheet")
            return active
        if isinstance(target, Worksheet):
            return target
        if target not in self.workbook:
            raise ReferenceNotFound(f'Worksheet "{target}" not found.')
        return self.workbook[target]

    def _check_bounds(self, row: int, col: int, sheet: Worksheet) -> None:
        if not (1 <= row <= self.max_row and 1 <= col <= self.max_col):
            raise ReferenceNotFound(
                f"Cell (row {row}, column {col}) is outside of worksheet {sheet.title}"
            )

    def _read_cell(self, sheet: Worksheet, row: int, col: int) -> ScalarExcelValue:
        # Worksheet.cell() creates missing cells and grows the sheet's extent
        cell = sheet._cells.get((row, col))
        value = cell.value if cell is not None else None
        if isinstance(value, ArrayFormula):
            value = value.text
        if isinstance(value, Decimal):
            value = float(value)
        if isinstance(value, CellRichText):
            value = str(value)
        if isinstance(value, str) and value in EXCEL_ERRORS:
            return ErrorValue(value)
        if value is not None and not isinstance(value, (int, float, str, bool)):
            # Dates and other rich values are out of scope, fall back to text
            value = str(value)
        return value

    def _read_range(self, sheet: Worksheet, ref: RangeReference) -> list[list]:
        # Unbound axes only extend as far as the sheet's used area
        min_row, max_row = self._extent(ref.start.row, ref.end.row, sheet.max_row)
        min_col, max_col = self._extent(ref.start.col, ref.end.col, sheet.max_column)
        self._check_bounds(max_row, max_col, sheet)
        if max_row < min_row or max_col < min_col:
            logger.warning("Range %s on empty sheet %s", ref, sheet.title)
            return [[]]

        logger.debug(
            "Reading %s!%s%d:%s%d",
            sheet.title,
            column_as_str(min_col),
            min_row,
            column_as_str(max_col),
            max_row,
        )
        return [
            [self._read_cell(sheet, row, col) for col in range(min_col, max_col + 1)]
            for row in range(min_row, max_row + 1)
        ]

    @staticmethod
    def _extent(start: int | None, end: int | None, used: int) -> tuple[int, int]:
        if start is None or end is None:
            return 1, used
        return min(start, end), max(start, end)
