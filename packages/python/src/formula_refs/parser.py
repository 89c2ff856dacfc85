import re

from formula_refs.ast import CellReference, RangeEnd, RangeReference, ReferenceNode
from formula_refs.errors import MalformedReference
from formula_refs.utils import column_to_index

CELL_ADDRESS_REGEX = re.compile(r"([$]?)([A-Za-z]{1,3})([$]?)([1-9][0-9]*)")
COLUMN_RANGE_REGEX = re.compile(r"([$]?)([A-Za-z]{1,3}):([$]?)([A-Za-z]{1,4})")
ROW_RANGE_REGEX = re.compile(r"([$]?)([1-9][0-9]*):([$]?)([1-9][0-9]*)")


def _match(regex: re.Pattern[str], text: str, kind: str) -> re.Match[str]:
    match = regex.fullmatch(text)
    if match is None:
        raise MalformedReference(f"Invalid {kind}: {text!r}")
    return match


def parse_cell_address(text: str, sheet: str | None = None) -> ReferenceNode:
    """Parse a single cell address like `B12` or `$B$12`."""
    match = _match(CELL_ADDRESS_REGEX, text, "cell address")
    _, col, _, row = match.groups()
    return ReferenceNode(
        CellReference(
            col=column_to_index(col),
            row=int(row),
            sheet=sheet,
            address=match.group(0),
        )
    )


def parse_column_range(text: str, sheet: str | None = None) -> ReferenceNode:
    """Parse a whole-column range like `A:C`. Rows stay unbound."""
    match = _match(COLUMN_RANGE_REGEX, text, "column range")
    _, start, _, end = match.groups()
    return ReferenceNode(
        RangeReference(
            start=RangeEnd(col=column_to_index(start), address=start),
            end=RangeEnd(col=column_to_index(end), address=end),
            sheet=sheet,
            address=match.group(0),
        )
    )


def parse_row_range(text: str, sheet: str | None = None) -> ReferenceNode:
    """Parse a whole-row range like `1:3`. Columns stay unbound."""
    match = _match(ROW_RANGE_REGEX, text, "row range")
    _, start, _, end = match.groups()
    return ReferenceNode(
        RangeReference(
            start=RangeEnd(row=int(start), address=start),
            end=RangeEnd(row=int(end), address=end),
            sheet=sheet,
            address=match.group(0),
        )
    )


def parse_address(text: str, sheet: str | None = None) -> ReferenceNode:
    """Parse any address fragment: a cell, a column range or a row range."""
    if CELL_ADDRESS_REGEX.fullmatch(text):
        return parse_cell_address(text, sheet)
    if COLUMN_RANGE_REGEX.fullmatch(text):
        return parse_column_range(text, sheet)
    if ROW_RANGE_REGEX.fullmatch(text):
        return parse_row_range(text, sheet)
    raise MalformedReference(f"Invalid reference: {text!r}")
