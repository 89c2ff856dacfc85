from openpyxl.utils import get_column_letter

from formula_refs.types import ExcelValue

# Grid limits of a modern worksheet
MAX_ROW = 1048576
MAX_COL = 16384


def column_to_index(letters: str) -> int:
    """Convert column letters to a 1-based index: A -> 1, Z -> 26, AA -> 27.

    Case-insensitive. Characters that are not letters are skipped, so "$A"
    reads as "A".
    """
    index = 0
    for char in letters.upper():
        if "A" <= char <= "Z":
            index = index * 26 + (ord(char) - ord("A") + 1)
    return index


def index_to_column(index: int) -> str:
    """Inverse of `column_to_index` for 1 to 3 letter columns."""
    return get_column_letter(index)


def column_as_int(col: int | str) -> int:
    if isinstance(col, str):
        col = column_to_index(col)
    return col


def column_as_str(col: int | str) -> str:
    if isinstance(col, int):
        col = index_to_column(col)
    return col


def array_shape(array: ExcelValue) -> tuple[int, int]:
    """
    Determine the shape of an array and validate it has a regular structure.

    Returns a tuple of (height, width):
    - For scalars: (1, 1)
    - For 1D arrays: always returns (1, n)
    - For 2D arrays: returns (rows, columns)

    Raises ValueError if the array has irregular/jagged rows.
    """
    if not isinstance(array, list):
        return (1, 1)
    if not array:
        return (0, 0)

    if not any(isinstance(item, list) for item in array):
        # 1D arrays are row vectors
        return (1, len(array))

    row_widths = [len(row) if isinstance(row, list) else 1 for row in array]
    if len(set(row_widths)) > 1:
        raise ValueError(f"Array has irregular row lengths: {row_widths}")

    return (len(array), row_widths[0])


def as_2d(array: list) -> list[list]:
    """Promote a 1D row vector to a single-row 2D array."""
    if array and all(isinstance(row, list) for row in array):
        return array
    return [list(array)]
