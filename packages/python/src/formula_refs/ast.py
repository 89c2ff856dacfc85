from typing import NamedTuple

from formula_refs.types import ExcelValue


class CellReference(NamedTuple):
    col: int
    row: int
    sheet: str | None = None
    # Literal text the reference was parsed from, None for algebra results
    address: str | None = None


class RangeEnd(NamedTuple):
    col: int | None = None
    row: int | None = None
    address: str | None = None


class RangeReference(NamedTuple):
    start: RangeEnd
    end: RangeEnd
    sheet: str | None = None
    address: str | None = None

    @property
    def is_column_range(self) -> bool:
        return self.start.row is None and self.end.row is None

    @property
    def is_row_range(self) -> bool:
        return self.start.col is None and self.end.col is None


class ReferenceNode(NamedTuple):
    """A reference that has not been turned into a value yet."""

    ref: CellReference | RangeReference


class Collection(NamedTuple):
    """Values gathered by the union operator. Carries no reference identity."""

    values: tuple[ExcelValue, ...]


# Expression tree nodes, as produced by the upstream formula parser.


class Literal(NamedTuple):
    # One of "number", "string", "boolean", "error"
    kind: str
    text: str


class Address(NamedTuple):
    text: str
    sheet: str | None = None


class ArrayLiteral(NamedTuple):
    rows: "tuple[tuple[ASTNode, ...], ...]"


class Intersection(NamedTuple):
    operands: "tuple[ASTNode, ...]"


class Union(NamedTuple):
    operands: "tuple[ASTNode, ...]"


class Span(NamedTuple):
    operands: "tuple[ASTNode, ...]"


class Prefix(NamedTuple):
    tokens: tuple[str, ...]
    operand: "ASTNode"


class Postfix(NamedTuple):
    operand: "ASTNode"
    token: str


class Infix(NamedTuple):
    left: "ASTNode"
    operator: str
    right: "ASTNode"


# Type alias for all possible AST nodes
ASTNode = (
    Literal
    | Address
    | ArrayLiteral
    | Intersection
    | Union
    | Span
    | Prefix
    | Postfix
    | Infix
    | ReferenceNode
)
