import logging
from typing import Any, Callable, Mapping

from formula_refs.algebra import apply_intersect, apply_span, apply_union
from formula_refs.ast import (
    Address,
    ArrayLiteral,
    ASTNode,
    Infix,
    Intersection,
    Literal,
    Postfix,
    Prefix,
    ReferenceNode,
    Span,
    Union,
)
from formula_refs.dispatcher import Dispatcher
from formula_refs.errors import FormulaError
from formula_refs.operators import OPERATOR_FAMILIES, OperatorFamily
from formula_refs.parser import parse_address
from formula_refs.resolver import ReferenceLookup, Resolver
from formula_refs.types import (
    ErrorValue,
    ExcelValue,
    to_array,
    to_boolean,
    to_error,
    to_number,
    to_string,
)

logger = logging.getLogger(__name__)

LITERALS: dict[str, Callable[[str], Any]] = {
    "number": to_number,
    "string": to_string,
    "boolean": to_boolean,
    "error": to_error,
}


class Evaluator:
    """Evaluate expression trees built by the upstream formula parser.

    References stay references while they are being combined and are only
    dereferenced when a value is needed. Formula errors come back as
    `ErrorValue` results, anything else is raised.
    """

    def __init__(
        self,
        lookup: ReferenceLookup,
        families: Mapping[OperatorFamily, Callable[..., ExcelValue]] = OPERATOR_FAMILIES,
    ):
        self.resolver = Resolver(lookup)
        self.dispatcher = Dispatcher(self.resolver, families)

    def evaluate(self, node: ASTNode) -> ExcelValue:
        try:
            return self.resolver.resolve(self._evaluate_node(node))
        except FormulaError as e:
            logger.debug("Formula error %s: %s", e.kind, e)
            return ErrorValue(e.kind)

    def _evaluate_node(self, node: ASTNode) -> Any:
        """Evaluate a node to a value or to a ReferenceNode."""
        if isinstance(node, Literal):
            if node.kind not in LITERALS:
                raise ValueError(f"Unknown literal kind: {node.kind}")
            return LITERALS[node.kind](node.text)

        elif isinstance(node, Address):
            return parse_address(node.text, sheet=node.sheet)

        elif isinstance(node, ReferenceNode):
            return node

        elif isinstance(node, ArrayLiteral):
            return to_array(
                [
                    [self.resolver.resolve(self._evaluate_node(item)) for item in row]
                    for row in node.rows
                ]
            )

        elif isinstance(node, Intersection):
            return apply_intersect([self._evaluate_node(n) for n in node.operands])

        elif isinstance(node, Union):
            return apply_union(
                [self._evaluate_node(n) for n in node.operands], self.resolver
            )

        elif isinstance(node, Span):
            return apply_span([self._evaluate_node(n) for n in node.operands])

        elif isinstance(node, Prefix):
            return self.dispatcher.apply_prefix(
                node.tokens, self._evaluate_node(node.operand)
            )

        elif isinstance(node, Postfix):
            return self.dispatcher.apply_postfix(
                self._evaluate_node(node.operand), node.token
            )

        elif isinstance(node, Infix):
            return self.dispatcher.apply_infix(
                self._evaluate_node(node.left),
                node.operator,
                self._evaluate_node(node.right),
            )

        raise ValueError(f"Unknown node type: {type(node)}")
