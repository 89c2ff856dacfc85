from enum import IntEnum, auto
from typing import NamedTuple, NoReturn, Union

from formula_refs.errors import CoercionError, FormulaError


class ErrorValue(NamedTuple):
    """A formula error held as an ordinary value, e.g. ErrorValue("#NULL!")."""

    kind: str

    def __str__(self) -> str:
        return self.kind


# The order of the flags is very deliberate here: in comparisons, booleans >
# text > numbers. This ordering allows us to use ExcelType to directly handle that
class ExcelType(IntEnum):
    EMPTY = auto()
    NUMBER = auto()
    TEXT = auto()
    BOOLEAN = auto()
    ERROR = auto()
    ARRAY = auto()


ScalarExcelValue = None | int | float | str | bool | ErrorValue
ExcelValue = Union[ScalarExcelValue, "list[ExcelValue]"]


def excel_type(value: ExcelValue) -> ExcelType:
    """Return the ExcelType for a given ExcelValue."""
    if value is None:
        return ExcelType.EMPTY
    if isinstance(value, ErrorValue):
        return ExcelType.ERROR
    if isinstance(value, bool):
        return ExcelType.BOOLEAN
    if isinstance(value, (int, float)):
        return ExcelType.NUMBER
    if isinstance(value, str):
        return ExcelType.TEXT
    if isinstance(value, list):
        return ExcelType.ARRAY
    raise CoercionError(f"Unknown Excel type for value: {value}")


def is_error(value: ExcelValue) -> bool:
    return isinstance(value, ErrorValue)


def parse_number(val: str):
    # int() and float() accept digit separators, Excel does not
    if "_" in val:
        raise ValueError(f"Invalid number: {val}")
    is_float = ("." in val) or ("e" in val) or ("E" in val)
    return float(val) if is_float else int(val)


def coerce_to_number(val: ExcelValue) -> int | float:
    """Convert an ExcelValue to a number following Excel semantics."""
    if val is None:
        return 0
    if isinstance(val, bool):
        return int(val)
    if isinstance(val, (int, float)):
        return val
    if isinstance(val, str):
        if not val.strip():
            return 0
        try:
            return parse_number(val.strip())
        except ValueError:
            raise CoercionError(f"Cannot convert text '{val}' to number")
    if isinstance(val, list):
        raise CoercionError("Cannot convert array to number")
    raise CoercionError(f"Cannot convert {val} to number")


def coerce_to_text(value: ExcelValue) -> str:
    """Convert an ExcelValue to text following Excel semantics."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).upper()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        raise CoercionError("Cannot convert array to text")
    raise CoercionError(f"Cannot convert {value} to text")


# Literal tokens. The upstream grammar has already validated their shape.


def to_number(text: str) -> int | float:
    try:
        return parse_number(text)
    except ValueError:
        raise CoercionError(f"Invalid number literal: {text}")


def to_string(text: str) -> str:
    # Drops the quote marks; the tokenizer guarantees they are there
    return text[1:-1]


def to_boolean(text: str) -> bool:
    # Case-sensitive on purpose, "true" is not a boolean literal
    return text == "TRUE"


def to_array(array: list) -> list:
    return array


def to_error(text: str) -> NoReturn:
    raise FormulaError(text.upper())
