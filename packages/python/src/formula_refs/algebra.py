"""Range algebra: intersection, union and spanning of references.

References are folded through an immutable `BoundingBox`. An axis that a
reference leaves unbound (the rows of `A:C`, the columns of `1:3`) is stored as
None and behaves as unbounded: it overlaps any extent and never narrows one.
"""

import logging
from functools import reduce
from typing import Any, NamedTuple, Sequence

from formula_refs.ast import (
    CellReference,
    Collection,
    RangeEnd,
    RangeReference,
    ReferenceNode,
)
from formula_refs.errors import FormulaError, MalformedReference, NullIntersection
from formula_refs.resolver import Resolver

logger = logging.getLogger(__name__)


class BoundingBox(NamedTuple):
    min_row: int | None
    max_row: int | None
    min_col: int | None
    max_col: int | None
    sheet: str | None = None


def _axis(start: int | None, end: int | None) -> tuple[int | None, int | None]:
    if start is None or end is None:
        return None, None
    return min(start, end), max(start, end)


def bounding_box(node: Any) -> BoundingBox:
    if not isinstance(node, ReferenceNode):
        # Intersecting a plain value is a user error, not a malformed address
        raise FormulaError("#VALUE!", f"Expected a reference, got {node!r}")
    ref = node.ref
    if isinstance(ref, CellReference):
        return BoundingBox(ref.row, ref.row, ref.col, ref.col, ref.sheet)
    min_row, max_row = _axis(ref.start.row, ref.end.row)
    min_col, max_col = _axis(ref.start.col, ref.end.col)
    return BoundingBox(min_row, max_row, min_col, max_col, ref.sheet)


def _overlaps(lo: int | None, hi: int | None, other_lo, other_hi) -> bool:
    if lo is None or other_lo is None:
        return True
    return not (other_lo > hi or other_hi < lo)


def _narrow(lo: int | None, hi: int | None, other_lo, other_hi):
    if lo is None:
        return other_lo, other_hi
    if other_lo is None:
        return lo, hi
    return max(lo, other_lo), min(hi, other_hi)


def _widen(lo: int | None, hi: int | None, other_lo, other_hi):
    if lo is None or other_lo is None:
        return None, None
    return min(lo, other_lo), max(hi, other_hi)


def intersect_boxes(box: BoundingBox, other: BoundingBox) -> BoundingBox:
    if (
        box.sheet != other.sheet
        or not _overlaps(box.min_row, box.max_row, other.min_row, other.max_row)
        or not _overlaps(box.min_col, box.max_col, other.min_col, other.max_col)
    ):
        raise NullIntersection(f"No intersection between {box} and {other}")
    min_row, max_row = _narrow(box.min_row, box.max_row, other.min_row, other.max_row)
    min_col, max_col = _narrow(box.min_col, box.max_col, other.min_col, other.max_col)
    return BoundingBox(min_row, max_row, min_col, max_col, box.sheet)


def span_boxes(box: BoundingBox, other: BoundingBox) -> BoundingBox:
    min_row, max_row = _widen(box.min_row, box.max_row, other.min_row, other.max_row)
    min_col, max_col = _widen(box.min_col, box.max_col, other.min_col, other.max_col)
    return BoundingBox(min_row, max_row, min_col, max_col)


def _range_from_box(box: BoundingBox) -> ReferenceNode:
    return ReferenceNode(
        RangeReference(
            start=RangeEnd(col=box.min_col, row=box.min_row),
            end=RangeEnd(col=box.max_col, row=box.max_row),
            sheet=box.sheet,
        )
    )


def apply_intersect(refs: Sequence[ReferenceNode]) -> ReferenceNode:
    """Narrow references to their common overlap (the space operator).

    Raises NullIntersection as soon as two boxes are disjoint or live on
    different sheets. An unset sheet never matches a named one. A 1x1 result
    is reduced to a cell reference.
    """
    if not refs:
        raise MalformedReference("Cannot intersect an empty list of references")
    boxes = [bounding_box(node) for node in refs]
    box = reduce(intersect_boxes, boxes[1:], boxes[0])
    logger.debug("intersect %s -> %s", refs, box)

    if (
        box.min_row is not None
        and box.min_col is not None
        and box.min_row == box.max_row
        and box.min_col == box.max_col
    ):
        return ReferenceNode(CellReference(box.min_col, box.min_row, sheet=box.sheet))
    return _range_from_box(box)


def apply_union(refs: Sequence[Any], resolver: Resolver) -> Collection:
    """Resolve every operand (the comma operator). Order and duplicates are kept."""
    values = tuple(resolver.resolve(ref) for ref in refs)
    logger.debug("union %s -> %s", refs, values)
    return Collection(values)


def apply_span(refs: Sequence[ReferenceNode]) -> ReferenceNode:
    """Smallest range enclosing every reference, e.g. `A1:B3:C8`.

    Order does not matter and sheets are ignored. The result is always a range,
    even when every input is the same cell.
    """
    if not refs:
        raise MalformedReference("Cannot span an empty list of references")
    boxes = [bounding_box(node) for node in refs]
    box = reduce(span_boxes, boxes[1:], boxes[0]._replace(sheet=None))
    logger.debug("span %s -> %s", refs, box)
    return _range_from_box(box)
