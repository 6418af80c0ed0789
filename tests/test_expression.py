import logging
from concurrent.futures import ThreadPoolExecutor

import pytest

from dexpr import (
    MAX_INT64,
    MIN_INT64,
    DivByZeroError,
    Expression,
    FunctionError,
    FunctionNotExistError,
    IncompatibleTypesError,
    InvalidCompositeTypeError,
    InvalidExprError,
    InvalidIndexError,
    InvalidOpError,
    InvalidSyntaxError,
    Literal,
    TypeNotIndexableError,
    UnderflowOverflowError,
    VarNotExistError,
    compile_expression,
    evaluate,
    must_compile,
)
from dexpr.functions import roundto

VARS = {
    "a": Literal(4),
    "b": Literal(3),
    "c": Literal(4.5),
    "d": Literal(3.5),
    "str": Literal("hello"),
    "numStrA": Literal("4"),
    "numStrB": Literal("3"),
    "numStrC": Literal("4.5"),
    "numStrD": Literal("3.5"),
    "trueStr": Literal(True),
    "t": Literal(True),
    "break": Literal(1),
    "map": Literal(17),
    "func": Literal(11),
}
FUNCS = {"roundto": roundto}


def test_source_text_is_kept() -> None:
    for source in ["a+b", "income", "6.6", '"true" == "TRUE"']:
        expression = compile_expression(source)
        assert isinstance(expression, Expression)
        assert str(expression) == source


@pytest.mark.parametrize(
    ("source", "want"),
    [
        ("1 == 1", "true"),
        ("1 == 2", "false"),
        ("2.6 + 2.5", "5.1"),
        ("-2 + -2", "-4"),
        ("-2.5 + -2.6", "-5.1"),
        ("-2 - 3", "-5"),
        ("8 - 9", "-1"),
        ("a + numStrB", "7"),
        ("8/4", "2"),
        ("1/4", "0.25"),
        ("8*4", "32"),
        (f"{MIN_INT64} * 1", str(MIN_INT64)),
        (f"{MAX_INT64} * 1", str(MAX_INT64)),
        (f"({MIN_INT64} / 2) * 2", str(MIN_INT64)),
        (f"(({MAX_INT64}+-1) / 2) * 2", str(MAX_INT64 - 1)),
        (f"{MIN_INT64} + 0", str(MIN_INT64)),
        ("roundto(5.567, 2)", "5.57"),
        ("roundto(-17.5, 0)", "-17"),
        ('"Hello world"[6]', "w"),
        ("[]lit{7,9,2}[1]", "9"),
        ("[3]lit{7.8,9.4,2.3}[2]", "2.3"),
        ("0x1F + 0b101", "36"),
        ("1_000 * 017", "15000"),
    ],
)
def test_eval(source, want) -> None:
    got = compile_expression(source, FUNCS).eval(VARS)
    assert got.err is None, got
    assert str(got) == want


@pytest.mark.parametrize(
    ("source", "want"),
    [
        ("8/bob", VarNotExistError("bob")),
        ("8/(1 == 1)", IncompatibleTypesError()),
        ("8/0", DivByZeroError()),
        ('"fred"/0', DivByZeroError()),
        ("bob(5.567, 2)", FunctionNotExistError("bob")),
        ("bob(1)", FunctionNotExistError("bob")),
        ("[]lit{7,9,2}[3] == 9", InvalidIndexError()),
        ('"Hello"[9]', InvalidIndexError()),
        ("7[0] == 4", TypeNotIndexableError()),
        ("7.2[0] == 4", TypeNotIndexableError()),
        ("str[0]", TypeNotIndexableError()),
        ('"Hello"["x"]', InvalidSyntaxError()),
        (f"{MAX_INT64}+{MAX_INT64}", UnderflowOverflowError()),
        (f"{MAX_INT64}*{MAX_INT64}", UnderflowOverflowError()),
        (f"{MIN_INT64}*{MIN_INT64}", UnderflowOverflowError()),
        (f"{MAX_INT64}+1", UnderflowOverflowError()),
        (f"{MIN_INT64}-1", UnderflowOverflowError()),
        (f"{MIN_INT64} + -1", UnderflowOverflowError()),
        (f"{MAX_INT64} - {MIN_INT64}", UnderflowOverflowError()),
        (f"{MAX_INT64} - -1", UnderflowOverflowError()),
        (f"{MAX_INT64}*2", UnderflowOverflowError()),
        (f"{MIN_INT64}*2", UnderflowOverflowError()),
    ],
)
def test_eval_errors_are_anchored_to_source(source, want) -> None:
    got = compile_expression(source, FUNCS).eval(VARS)
    assert got.err == InvalidExprError(source, want)


def test_function_errors_are_reported_with_name() -> None:
    source = "roundto(5.567, 2, 9, 23)"
    got = compile_expression(source, FUNCS).eval(VARS)
    assert isinstance(got.err, InvalidExprError)
    inner = got.err.err
    assert isinstance(inner, FunctionError)
    assert inner.name == "roundto"
    assert "expected 2 args" in str(inner.err)


@pytest.mark.parametrize(
    ("source", "want"),
    [
        ("1 == 1", True),
        ("1 == 1.5", False),
        ("1.0 == 1", True),
        ("numStrB == 3", True),
        ("3.0 == numStrB", True),
        ("a == a", True),
        ("a == b", False),
        ('"hello" == "hello"', True),
        ('"hllo" == 7', False),
        ('str == "hello"', True),
        ("numStrC == numStrD", False),
        ("break == 1", True),
        ("map == 17", True),
        ("func == 11", True),
        ('"hllo" != 7', True),
        ('"true" == 1', False),
        ('"true" == "TRUE"', False),
        ('"false" != 0.0', True),
        ('"true" == t', False),
        ("6.7 < 7", True),
        ("7 < 7.2", True),
        ("5.5 <= numStrA", False),
        ("numStrA > 3", True),
        ("numStrD >= numStrC", False),
        ("5 + 1.5 > 6", True),
        ("numStrC + numStrD == 8", True),
        ("numStrC + numStrD == 8.0", True),
        ("trueStr", True),
        ("!trueStr", False),
        ("9 > 8 && 2 < 3", True),
        ("9 > 9 && 2 < 3", False),
        ("9 > 8 && 2 < 3 && 7 > 7", False),
        ("9 > 9 || 2 < 3", True),
        ("8 > 8 || 3 < 3 || 7 > 7", False),
        ("9 + (8 + 2) > 18", True),
        ("roundto(8+2.25, 1) == 10.3", True),
        ("roundto(8+2.25, 1) == 10.25", False),
        ('"Hello world"[6] == \'w\'', True),
        ('"Hello world"[6] == "h"', False),
        ("[]lit{7,9,2}[1] == 9", True),
        ("[3]lit{7,9,2}[1] == 8", False),
        ("[]lit{numStrA, numStrB, numStrC}[2] == 4.5", True),
        ('[]lit{"fred", "bob", "alf"}[2] == "alf"', True),
    ],
)
def test_eval_bool(source, want) -> None:
    assert compile_expression(source, FUNCS).eval_bool(VARS) is want


def test_eval_bool_errors() -> None:
    an_error = ValueError("this is an error")
    variables = {"anError": Literal(an_error)}
    cases = [
        ("7 + 8", IncompatibleTypesError()),
        ('7 < "hello"', IncompatibleTypesError()),
        ('"world" > 2.1', IncompatibleTypesError()),
        ("7 && 9", IncompatibleTypesError()),
        ("total > 20", VarNotExistError("total")),
        ("20 < total", VarNotExistError("total")),
        ("bob(8+2.257) == 7", FunctionNotExistError("bob")),
        ('-"something"', IncompatibleTypesError()),
        ("!5.2", IncompatibleTypesError()),
        ("anError == anError", an_error),
        ("anError != anError", an_error),
    ]
    for source, want in cases:
        expression = compile_expression(source, {})
        with pytest.raises(InvalidExprError) as excinfo:
            expression.eval_bool(variables)
        assert excinfo.value == InvalidExprError(source, want), source


@pytest.mark.parametrize(
    ("source", "want"),
    [
        ("7 {} 3", InvalidSyntaxError()),
        ("8/cot££t", InvalidSyntaxError()),
        ("[lit{fred", InvalidSyntaxError()),
        ("[]lit{fred", InvalidSyntaxError()),
        ("func() bool {return 1==1}", InvalidSyntaxError()),
        ('map[lit]lit{"fred": 7, "bob": 9}["bob"] == 9', InvalidSyntaxError()),
        ("[]int{7,9,2}[1] == 9", InvalidCompositeTypeError()),
        ('[]string{"fred","bob","alf"}[1] == "bob"', InvalidCompositeTypeError()),
        ("10 & 101", InvalidOpError("&")),
        ("2i + 1", InvalidSyntaxError()),
    ],
)
def test_compile_errors(source, want) -> None:
    with pytest.raises(InvalidExprError) as excinfo:
        compile_expression(source)
    assert excinfo.value == InvalidExprError(source, want)


def test_must_compile() -> None:
    assert str(must_compile("a+b")) == "a+b"
    with pytest.raises(InvalidExprError, match="invalid expression: /bob harry"):
        must_compile("/bob harry")


def test_default_functions_are_builtin() -> None:
    assert str(evaluate("roundto(max(1.234, 0.5), 1)", {})) == "1.2"
    assert evaluate("roundto(1.5, 0)", {}, functions={}).err == InvalidExprError(
        "roundto(1.5, 0)", FunctionNotExistError("roundto")
    )


def test_plain_python_values_are_accepted_as_variables() -> None:
    expression = compile_expression("price * quantity > 20")
    assert expression.eval_bool({"price": 9, "quantity": 3}) is True
    assert expression.eval_bool({"price": 9, "quantity": 2}) is False


def test_repeated_evaluation_is_deterministic() -> None:
    expression = compile_expression("[]lit{a, b, a + b}[2] * 2", FUNCS)
    first = [str(expression.eval({"a": i, "b": 2})) for i in range(5)]
    second = [str(expression.eval({"a": i, "b": 2})) for i in range(5)]
    assert first == second == ["4", "6", "8", "10", "12"]


def test_concurrent_evaluation_shares_compiled_tree() -> None:
    expression = compile_expression('[]lit{x, x * 2}[1] + roundto(y, 1) > 10 && "abc"[1] == "b"', FUNCS)

    def run(i: int) -> bool:
        return expression.eval_bool({"x": i, "y": 0.25})

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(run, range(200)))

    assert results == [i * 2 + 0.3 > 10 for i in range(200)]


def test_compile_failures_are_logged(caplog) -> None:
    caplog.set_level(logging.INFO, logger="dexpr.expression")
    with pytest.raises(InvalidExprError):
        compile_expression("[]int{1}")
    assert [record.message for record in caplog.records] == ["expression_invalid"]
    assert caplog.records[0].expression == "[]int{1}"


def test_ints_beyond_float_range_are_incompatible() -> None:
    got = evaluate("x + 1", {"x": 10**400})
    assert got.err == InvalidExprError("x + 1", IncompatibleTypesError())
    assert evaluate("-x < 0", {"x": 10**400}).err == InvalidExprError("-x < 0", IncompatibleTypesError())
