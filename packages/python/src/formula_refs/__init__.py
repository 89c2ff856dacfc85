from formula_refs.algebra import apply_intersect, apply_span, apply_union
from formula_refs.ast import (
    CellReference,
    Collection,
    RangeEnd,
    RangeReference,
    ReferenceNode,
)
from formula_refs.dispatcher import Dispatcher, classify_infix
from formula_refs.errors import (
    CoercionError,
    FormulaError,
    FormulaRefsError,
    MalformedReference,
    NullIntersection,
    ReferenceNotFound,
    UnrecognizedOperator,
)
from formula_refs.interpreter import Evaluator
from formula_refs.lookup import WorkbookLookup
from formula_refs.parser import (
    parse_address,
    parse_cell_address,
    parse_column_range,
    parse_row_range,
)
from formula_refs.resolver import ReferenceLookup, Resolved, Resolver
from formula_refs.types import (
    ErrorValue,
    to_array,
    to_boolean,
    to_error,
    to_number,
    to_string,
)
from formula_refs.utils import column_to_index, index_to_column
