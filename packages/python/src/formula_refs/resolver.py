from typing import Any, NamedTuple, Protocol, runtime_checkable

from formula_refs.ast import Collection, ReferenceNode
from formula_refs.types import ExcelValue


@runtime_checkable
class ReferenceLookup(Protocol):
    """Read access to the values behind references.

    Implementations must resolve cell and range references, sheet-qualified or
    not, and raise `ReferenceNotFound` for addresses they cannot serve.
    """

    def retrieve_ref(self, node: ReferenceNode) -> ExcelValue: ...


class Resolved(NamedTuple):
    value: ExcelValue
    is_array: bool


class Resolver:
    def __init__(self, lookup: ReferenceLookup):
        self.lookup = lookup

    def classify_and_resolve(self, operand: Any) -> Resolved:
        """Turn an operand into a value, dereferencing it if it is a reference.

        Arrays pass through untouched. For references, `is_array` follows the
        shape of what the lookup returned, not the shape of the reference.
        """
        if isinstance(operand, list):
            return Resolved(operand, True)
        if isinstance(operand, Collection):
            return Resolved(list(operand.values), True)
        if isinstance(operand, ReferenceNode) or hasattr(operand, "ref"):
            value = self.lookup.retrieve_ref(operand)
            return Resolved(value, isinstance(value, list))
        return Resolved(operand, False)

    def resolve(self, operand: Any) -> ExcelValue:
        return self.classify_and_resolve(operand).value
