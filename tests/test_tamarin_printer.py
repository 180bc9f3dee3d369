import pytest

from tamarin.tamarin_printer import Printer, inspect
from tamarin.tamarin_parser import parse
from tamarin.tamarin_object import (
    Environment, Integer, String, Array, Function, NativeFunction, Error,
    TRUE, FALSE, NULL,
)
from tamarin.tamarin_ast import (
    Identifier, IntegerLiteral, LetStatement, ReturnStatement, Program,
    StringLiteral, BlockStatement, ExpressionStatement, InfixExpression,
)


@pytest.fixture
def printer():
    return Printer()


# Test cases: (id, object, expected_string)
FORMAT_TEST_CASES = [
    ("int", Integer(123), "123"),
    ("negative_int", Integer(-5), "-5"),
    ("true", TRUE, "true"),
    ("false", FALSE, "false"),
    ("null", NULL, "null"),
    ("string_is_raw", String("hello world"), "hello world"),
    ("error", Error("type mismatch: INTEGER + BOOLEAN"), "ERROR: type mismatch: INTEGER + BOOLEAN"),
    ("array", Array([Integer(1), String("two"), Array([TRUE])]), "[1, two, [true]]"),
    ("empty_array", Array(), "[]"),
    ("native", NativeFunction("len", lambda *a: NULL), "builtin function"),
    (
        "let_statement",
        Program([LetStatement(Identifier("myVar"), Identifier("anotherVar"))]),
        "let myVar = anotherVar;",
    ),
    ("return_statement", ReturnStatement(IntegerLiteral(5)), "return 5;"),
    ("bare_return", ReturnStatement(None), "return;"),
    ("string_literal_is_raw", StringLiteral("hi"), "hi"),
]


@pytest.mark.parametrize("case_id, obj, expected", FORMAT_TEST_CASES, ids=[c[0] for c in FORMAT_TEST_CASES])
def test_pformat(printer, case_id, obj, expected):
    assert printer.pformat(obj) == expected


def test_function_value_inspection(printer):
    body = BlockStatement([ExpressionStatement(InfixExpression(Identifier("x"), "+", IntegerLiteral(2)))])
    fn = Function(["x", "y"], body, Environment())
    assert printer.pformat(fn) == "fn(x, y) {\n(x + 2)\n}"


def test_parsed_program_round_trips_to_canonical_form():
    program, errors = parse("let add = fn(a, b) { a + b }; add(1, [2, 3][0]);")
    assert errors == []
    assert str(program) == "let add = fn(a, b) (a + b);add(1, ([2, 3][0]))"


def test_unknown_objects_fall_back_to_repr(printer):
    assert printer.pformat(42) == "42"
    assert printer.pformat("raw") == "'raw'"


def test_inspect_helper():
    assert inspect(Array([NULL, Integer(0)])) == "[null, 0]"
