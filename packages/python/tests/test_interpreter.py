import pytest
from openpyxl import Workbook

from formula_refs.ast import (
    Address,
    ArrayLiteral,
    Infix,
    Intersection,
    Literal,
    Postfix,
    Prefix,
    Span,
    Union,
)
from formula_refs.errors import MalformedReference, ReferenceNotFound, UnrecognizedOperator
from formula_refs.interpreter import Evaluator
from formula_refs.lookup import WorkbookLookup
from formula_refs.types import ErrorValue


def num(text: str) -> Literal:
    return Literal("number", text)


def span(*addresses: str, sheet: str | None = None) -> Span:
    return Span(tuple(Address(a, sheet) for a in addresses))


@pytest.fixture
def workbook():
    wb = Workbook()
    sheet1 = wb.active
    sheet1.title = "Sheet1"

    # Setup Sheet1 with test data
    for i in range(1, 6):
        sheet1[f"A{i}"] = i  # A1 to A5: 1, 2, 3, 4, 5
        sheet1[f"B{i}"] = i * 2  # B1 to B5: 2, 4, 6, 8, 10

    # Create Sheet2 with more test data
    sheet2 = wb.create_sheet("Sheet2")
    for i in range(1, 4):
        sheet2[f"C{i}"] = i * 3  # C1 to C3: 3, 6, 9

    return wb


@pytest.fixture
def evaluator(workbook):
    return Evaluator(WorkbookLookup(workbook, current_sheet="Sheet1"))


class TestLiterals:
    def test_number(self, evaluator):
        assert evaluator.evaluate(num("1.5")) == 1.5

    def test_string(self, evaluator):
        assert evaluator.evaluate(Literal("string", '"abc"')) == "abc"

    def test_boolean(self, evaluator):
        assert evaluator.evaluate(Literal("boolean", "TRUE")) is True
        assert evaluator.evaluate(Literal("boolean", "FALSE")) is False

    def test_error_literal_becomes_value(self, evaluator):
        assert evaluator.evaluate(Literal("error", "#n/a")) == ErrorValue("#N/A")

    def test_array(self, evaluator):
        node = ArrayLiteral(((num("1"), num("2")), (Address("A3"), num("4"))))
        assert evaluator.evaluate(node) == [[1, 2], [3, 4]]

    def test_unknown_literal_kind(self, evaluator):
        with pytest.raises(ValueError, match="Unknown literal kind"):
            evaluator.evaluate(Literal("date", "2024-01-01"))


class TestReferences:
    def test_cell(self, evaluator):
        assert evaluator.evaluate(Address("B2")) == 4
        assert evaluator.evaluate(Address("$A$5")) == 5

    def test_sheet_qualified_cell(self, evaluator):
        assert evaluator.evaluate(Address("C2", sheet="Sheet2")) == 6

    def test_colon_chain(self, evaluator):
        assert evaluator.evaluate(span("A1", "B2")) == [[1, 2], [2, 4]]
        assert evaluator.evaluate(span("B3", "A2", "A3")) == [[2, 4], [3, 6]]

    def test_malformed_address(self, evaluator):
        with pytest.raises(MalformedReference):
            evaluator.evaluate(Address("A0"))

    def test_missing_sheet_is_not_a_formula_value(self, evaluator):
        with pytest.raises(ReferenceNotFound):
            evaluator.evaluate(Address("A1", sheet="Missing"))


class TestRangeOperators:
    def test_intersection_to_range(self, evaluator):
        node = Intersection((span("A1", "B2"), span("A1", "A3")))
        assert evaluator.evaluate(node) == [[1], [2]]
        node = Intersection((span("A1", "B5"), Address("3:3")))
        assert evaluator.evaluate(node) == [[3, 6]]

    def test_intersection_to_cell(self, evaluator):
        node = Intersection((Address("B:B"), Address("4:4")))
        assert evaluator.evaluate(node) == 8

    def test_null_intersection(self, evaluator):
        node = Intersection((Address("A1"), span("C1", "D2")))
        assert evaluator.evaluate(node) == ErrorValue("#NULL!")

    def test_null_intersection_aborts_the_expression(self, evaluator):
        node = Infix(
            num("1"), "+", Intersection((Address("A1"), Address("B1")))
        )
        assert evaluator.evaluate(node) == ErrorValue("#NULL!")

    def test_sheet_mismatch(self, evaluator):
        node = Intersection((Address("C1", sheet="Sheet2"), Address("C1")))
        assert evaluator.evaluate(node) == ErrorValue("#NULL!")

    def test_union(self, evaluator):
        node = Union((Address("A1"), span("A2", "A3"), Address("A1")))
        assert evaluator.evaluate(node) == [1, [[2], [3]], 1]


class TestOperators:
    def test_arithmetic(self, evaluator):
        node = Infix(Address("A2"), "*", Infix(Address("B1"), "+", num("3")))
        assert evaluator.evaluate(node) == 10

    def test_division_by_zero(self, evaluator):
        assert evaluator.evaluate(Infix(num("1"), "/", num("0"))) == ErrorValue(
            "#DIV/0!"
        )

    def test_comparison(self, evaluator):
        assert evaluator.evaluate(Infix(Address("A1"), "<", Address("B1"))) is True

    def test_concatenation(self, evaluator):
        node = Infix(Literal("string", '"A1="'), "&", Address("A1"))
        assert evaluator.evaluate(node) == "A1=1"

    def test_union_with_range_operand(self, evaluator):
        union = Union((span("A1", "A2"), Address("A3")))
        # The nested range cannot be compared or joined as one value
        assert evaluator.evaluate(Infix(union, "=", num("1"))) == [
            [ErrorValue("#VALUE!"), False]
        ]
        assert evaluator.evaluate(
            Infix(union, "&", Literal("string", '"x"'))
        ) == [[ErrorValue("#VALUE!"), "3x"]]
        assert evaluator.evaluate(Infix(union, "+", num("1"))) == [
            [ErrorValue("#VALUE!"), 4]
        ]

    def test_range_broadcast(self, evaluator):
        node = Infix(span("A1", "A3"), "+", num("10"))
        assert evaluator.evaluate(node) == [[11], [12], [13]]

    def test_prefix_and_postfix(self, evaluator):
        assert evaluator.evaluate(Prefix(("-",), Address("B5"))) == -10
        assert evaluator.evaluate(Postfix(Address("A5"), "%")) == 0.05

    def test_error_literal_propagates(self, evaluator):
        node = Infix(num("1"), "+", Literal("error", "#value!"))
        assert evaluator.evaluate(node) == ErrorValue("#VALUE!")

    def test_unrecognized_operator_is_fatal(self, evaluator):
        with pytest.raises(UnrecognizedOperator):
            evaluator.evaluate(Infix(num("1"), "~", num("2")))
