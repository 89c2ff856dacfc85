import math
import operator
from enum import Enum, auto
from typing import Callable, Sequence, cast

from formula_refs.errors import CoercionError, UnrecognizedOperator
from formula_refs.types import (
    ErrorValue,
    ExcelType,
    ExcelValue,
    ScalarExcelValue,
    coerce_to_number,
    coerce_to_text,
    excel_type,
)
from formula_refs.utils import array_shape, as_2d


NA = ErrorValue("#N/A")
VALUE = ErrorValue("#VALUE!")
DIV0 = ErrorValue("#DIV/0!")
NUM = ErrorValue("#NUM!")


class OperatorFamily(Enum):
    COMPARISON = auto()
    CONCATENATION = auto()
    ARITHMETIC = auto()
    PREFIX = auto()
    POSTFIX = auto()


OPERATOR_FAMILIES: dict[OperatorFamily, Callable[..., ExcelValue]] = {}


def operator_family(family: OperatorFamily):
    """Decorator to register the handler of an operator family."""

    def decorator(fn: Callable[..., ExcelValue]) -> Callable[..., ExcelValue]:
        OPERATOR_FAMILIES[family] = fn
        return fn

    return decorator


ScalarOp = Callable[[ScalarExcelValue, ScalarExcelValue], ScalarExcelValue]


def _at(rows: list[list], row: int, col: int) -> ScalarExcelValue:
    # Single rows and columns are repeated, anything else out of bounds is #N/A
    if len(rows) == 1:
        row = 0
    if len(rows[0]) == 1:
        col = 0
    if row >= len(rows) or col >= len(rows[row]):
        return NA
    return rows[row][col]


def broadcast(
    op: ScalarOp,
    left: ExcelValue,
    right: ExcelValue,
    left_is_array: bool,
    right_is_array: bool,
) -> ExcelValue:
    """
    Apply a scalar operation, element-wise if either operand is an array.
    Scalars and single rows/columns are broadcast against the other operand.
    """
    if not (left_is_array or right_is_array):
        return op(cast(ScalarExcelValue, left), cast(ScalarExcelValue, right))

    left_rows = as_2d(cast(list, left)) if left_is_array else [[left]]
    right_rows = as_2d(cast(list, right)) if right_is_array else [[right]]
    left_height, left_width = array_shape(left_rows)
    right_height, right_width = array_shape(right_rows)
    height = max(left_height, right_height)
    width = max(left_width, right_width)
    return [
        [op(_at(left_rows, r, c), _at(right_rows, r, c)) for c in range(width)]
        for r in range(height)
    ]


def apply_unary(
    op: Callable[[ScalarExcelValue], ScalarExcelValue],
    value: ExcelValue,
    is_array: bool,
) -> ExcelValue:
    if not is_array:
        return op(cast(ScalarExcelValue, value))
    return [[op(item) for item in row] for row in as_2d(cast(list, value))]


def first_error(*values: ScalarExcelValue) -> ErrorValue | None:
    for value in values:
        if isinstance(value, ErrorValue):
            return value
    # A range nested in a union cannot be used as a single operand
    if any(isinstance(value, list) for value in values):
        return VALUE
    return None


# Comparisons


COMPARISON_TYPE_PRIORITY: dict[ExcelType, int] = {
    ExcelType.BOOLEAN: 3,
    ExcelType.TEXT: 2,
    ExcelType.NUMBER: 1,
}


def _fill_empty(value: ScalarExcelValue, other: ScalarExcelValue) -> ScalarExcelValue:
    """Empty cells compare as the zero value of the other side's type."""
    if value is not None:
        return value
    if isinstance(other, bool):
        return False
    if isinstance(other, str):
        return ""
    return 0


def compare_scalar(left: ScalarExcelValue, right: ScalarExcelValue) -> int:
    left, right = _fill_empty(left, right), _fill_empty(right, left)

    # Priority order: booleans > strings > numbers
    lpriority = COMPARISON_TYPE_PRIORITY[excel_type(left)]
    rpriority = COMPARISON_TYPE_PRIORITY[excel_type(right)]
    if lpriority != rpriority:
        return -1 if lpriority < rpriority else 1

    # String comparisons are case-insensitive
    if isinstance(left, str) and isinstance(right, str):
        left, right = left.lower(), right.lower()

    left_, right_ = cast(float, left), cast(float, right)
    return (left_ > right_) - (left_ < right_)


COMPARISONS: dict[str, Callable[[int], bool]] = {
    "=": lambda c: c == 0,
    "<>": lambda c: c != 0,
    "<": lambda c: c < 0,
    "<=": lambda c: c <= 0,
    ">": lambda c: c > 0,
    ">=": lambda c: c >= 0,
}


@operator_family(OperatorFamily.COMPARISON)
def compare_op(
    left: ExcelValue,
    op: str,
    right: ExcelValue,
    left_is_array: bool = False,
    right_is_array: bool = False,
) -> ExcelValue:
    if op not in COMPARISONS:
        raise UnrecognizedOperator(f"Unknown comparison operator: {op}")
    test = COMPARISONS[op]

    def scalar(l: ScalarExcelValue, r: ScalarExcelValue) -> ScalarExcelValue:
        if error := first_error(l, r):
            return error
        return test(compare_scalar(l, r))

    return broadcast(scalar, left, right, left_is_array, right_is_array)


# Concatenation


@operator_family(OperatorFamily.CONCATENATION)
def concat_op(
    left: ExcelValue,
    op: str,
    right: ExcelValue,
    left_is_array: bool = False,
    right_is_array: bool = False,
) -> ExcelValue:
    if op != "&":
        raise UnrecognizedOperator(f"Unknown concatenation operator: {op}")

    def scalar(l: ScalarExcelValue, r: ScalarExcelValue) -> ScalarExcelValue:
        if error := first_error(l, r):
            return error
        return coerce_to_text(l) + coerce_to_text(r)

    return broadcast(scalar, left, right, left_is_array, right_is_array)


# Arithmetic


MATH_OPERATIONS: dict[str, Callable[[float, float], float]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
    # Floats overflow into #NUM! instead of building huge integers
    "^": lambda l, r: float(l) ** float(r),
}


def _to_number(value: ScalarExcelValue) -> float | ErrorValue:
    try:
        return coerce_to_number(value)
    except CoercionError:
        return VALUE


def math_scalar(
    left: ScalarExcelValue, op: str, right: ScalarExcelValue
) -> ScalarExcelValue:
    if error := first_error(left, right):
        return error
    l, r = _to_number(left), _to_number(right)
    if error := first_error(l, r):
        return error
    try:
        result = MATH_OPERATIONS[op](cast(float, l), cast(float, r))
    except ZeroDivisionError:
        return DIV0
    except OverflowError:
        return NUM
    # Fractional powers of negative numbers come back complex
    if isinstance(result, complex) or (
        isinstance(result, float) and not math.isfinite(result)
    ):
        return NUM
    return result


@operator_family(OperatorFamily.ARITHMETIC)
def math_op(
    left: ExcelValue,
    op: str,
    right: ExcelValue,
    left_is_array: bool = False,
    right_is_array: bool = False,
) -> ExcelValue:
    if op not in MATH_OPERATIONS:
        raise UnrecognizedOperator(f"Unknown arithmetic operator: {op}")
    return broadcast(
        lambda l, r: math_scalar(l, op, r), left, right, left_is_array, right_is_array
    )


# Unary operators


@operator_family(OperatorFamily.PREFIX)
def unary_op(
    prefixes: Sequence[str], value: ExcelValue, is_array: bool = False
) -> ExcelValue:
    if any(prefix not in ("+", "-") for prefix in prefixes):
        raise UnrecognizedOperator(f"Unknown prefix operator in {prefixes}")
    negations = list(prefixes).count("-")

    def scalar(item: ScalarExcelValue) -> ScalarExcelValue:
        if isinstance(item, ErrorValue):
            return item
        # "+" alone leaves the value untouched, text included
        if not negations:
            return item
        number = _to_number(item)
        if isinstance(number, ErrorValue):
            return number
        return -number if negations % 2 else number

    return apply_unary(scalar, value, is_array)


@operator_family(OperatorFamily.POSTFIX)
def percent_op(value: ExcelValue, postfix: str, is_array: bool = False) -> ExcelValue:
    if postfix != "%":
        raise UnrecognizedOperator(f"Unknown postfix operator: {postfix}")

    def scalar(item: ScalarExcelValue) -> ScalarExcelValue:
        if isinstance(item, ErrorValue):
            return item
        number = _to_number(item)
        if isinstance(number, ErrorValue):
            return number
        return number / 100

    return apply_unary(scalar, value, is_array)
