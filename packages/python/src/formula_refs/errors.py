class FormulaRefsError(Exception):
    """Base class for every error raised by formula_refs."""


class MalformedReference(FormulaRefsError):
    """Address text does not match the reference grammar."""


class UnrecognizedOperator(FormulaRefsError):
    """An operator token outside of every known operator family.

    The upstream grammar should never produce one, so this is a defect and is
    never turned into a formula error value."""


class ReferenceNotFound(FormulaRefsError):
    """Raised by a lookup for an address outside of its addressable domain."""


class CoercionError(FormulaRefsError):
    pass


class FormulaError(FormulaRefsError):
    """A formula-level error (#VALUE!, #NULL!, ...) raised as control flow.

    The evaluator catches these and stores them as `ErrorValue` results."""

    def __init__(self, kind: str, message: str | None = None):
        super().__init__(message or kind)
        self.kind = kind


class NullIntersection(FormulaError):
    def __init__(self, message: str | None = None):
        super().__init__("#NULL!", message)
