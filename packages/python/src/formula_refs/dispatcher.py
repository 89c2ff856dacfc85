from typing import Any, Callable, Mapping, Sequence

from formula_refs.errors import UnrecognizedOperator
from formula_refs.operators import OPERATOR_FAMILIES, OperatorFamily
from formula_refs.resolver import Resolver
from formula_refs.types import ExcelValue

# Infix token -> family, so dispatch is a single lookup
INFIX_FAMILIES: dict[str, OperatorFamily] = {
    **dict.fromkeys(("=", "<>", "<", "<=", ">", ">="), OperatorFamily.COMPARISON),
    "&": OperatorFamily.CONCATENATION,
    **dict.fromkeys(("+", "-", "*", "/", "^"), OperatorFamily.ARITHMETIC),
}
PREFIX_TOKENS = frozenset(("+", "-"))
POSTFIX_TOKENS = frozenset(("%",))


def classify_infix(token: str) -> OperatorFamily:
    family = INFIX_FAMILIES.get(token)
    if family is None:
        raise UnrecognizedOperator(f"Unrecognized infix operator: {token!r}")
    return family


class Dispatcher:
    """Resolves operands and hands them to the matching operator family."""

    def __init__(
        self,
        resolver: Resolver,
        families: Mapping[OperatorFamily, Callable[..., ExcelValue]] = OPERATOR_FAMILIES,
    ):
        self.resolver = resolver
        self.families = families

    def apply_prefix(self, prefix_tokens: Sequence[str], operand: Any) -> ExcelValue:
        for token in prefix_tokens:
            if token not in PREFIX_TOKENS:
                raise UnrecognizedOperator(f"Unrecognized prefix operator: {token!r}")
        value, is_array = self.resolver.classify_and_resolve(operand)
        return self.families[OperatorFamily.PREFIX](prefix_tokens, value, is_array)

    def apply_postfix(self, operand: Any, postfix_token: str) -> ExcelValue:
        if postfix_token not in POSTFIX_TOKENS:
            raise UnrecognizedOperator(
                f"Unrecognized postfix operator: {postfix_token!r}"
            )
        value, is_array = self.resolver.classify_and_resolve(operand)
        return self.families[OperatorFamily.POSTFIX](value, postfix_token, is_array)

    def apply_infix(self, operand_a: Any, op_token: str, operand_b: Any) -> ExcelValue:
        # Each side keeps its own shape, broadcasting happens in the family
        value_a, is_array_a = self.resolver.classify_and_resolve(operand_a)
        value_b, is_array_b = self.resolver.classify_and_resolve(operand_b)
        family = classify_infix(op_token)
        return self.families[family](value_a, op_token, value_b, is_array_a, is_array_b)
