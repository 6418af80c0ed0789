from __future__ import annotations

import math
from types import MappingProxyType
from typing import Any, Callable, Mapping

from .literal import MIN_INT64, Literal
from .operators import op_eql, op_gtr, op_lss

CallFun = Callable[[list[Literal]], Any]


def _expect_args(name: str, args: list[Literal], count: int) -> None:
    if len(args) != count:
        raise ValueError(f"{name} expected {count} args, got {len(args)}")


def _float_arg(arg: Literal) -> float:
    value = arg.as_float()
    if value is None:
        raise ValueError(f"can't convert to float: {arg}")
    return value


def _int_arg(arg: Literal) -> int:
    value = arg.as_int()
    if value is None:
        raise ValueError(f"can't convert to int: {arg}")
    return value


def roundto(args: list[Literal]) -> Literal:
    """Round half up to a number of decimal places."""
    _expect_args("roundto", args, 2)
    x = _float_arg(args[0])
    places = _int_arg(args[1])
    shift = math.pow(10, places)
    return Literal(math.floor(0.5 + x * shift) / shift)


def abs_(args: list[Literal]) -> Literal:
    _expect_args("abs", args, 1)
    as_int = args[0].as_int()
    if as_int is not None and as_int != MIN_INT64:
        return Literal(abs(as_int))
    return Literal(abs(_float_arg(args[0])))


def ceil(args: list[Literal]) -> Literal:
    _expect_args("ceil", args, 1)
    return Literal(float(math.ceil(_float_arg(args[0]))))


def floor(args: list[Literal]) -> Literal:
    _expect_args("floor", args, 1)
    return Literal(float(math.floor(_float_arg(args[0]))))


def sqrt(args: list[Literal]) -> Literal:
    _expect_args("sqrt", args, 1)
    value = _float_arg(args[0])
    if value < 0:
        raise ValueError(f"can't take square root of negative number: {args[0]}")
    return Literal(math.sqrt(value))


def _extreme(name: str, better: Callable[[Literal, Literal], Literal]) -> CallFun:
    def pick(args: list[Literal]) -> Literal:
        if not args:
            raise ValueError(f"{name} expected at least 1 arg, got 0")
        best = args[0]
        for arg in args[1:]:
            outcome = better(arg, best)
            if outcome.err is not None:
                raise ValueError(f"{name} can't compare {arg} with {best}")
            if outcome.as_bool():
                best = arg
        return best

    return pick


def in_(args: list[Literal]) -> Literal:
    """Whether the first argument equals any of the rest."""
    if not args:
        raise ValueError("in expected at least 1 arg, got 0")
    needle, haystack = args[0], args[1:]
    return Literal(any(op_eql(needle, candidate).as_bool() for candidate in haystack))


BUILTIN_FUNCTIONS: Mapping[str, CallFun] = MappingProxyType(
    {
        "abs": abs_,
        "ceil": ceil,
        "floor": floor,
        "in": in_,
        "max": _extreme("max", op_gtr),
        "min": _extreme("min", op_lss),
        "roundto": roundto,
        "sqrt": sqrt,
    }
)


def resolve_functions(extra_functions: Mapping[str, CallFun] | None = None) -> dict[str, CallFun]:
    functions = dict(BUILTIN_FUNCTIONS)
    if extra_functions:
        functions.update(extra_functions)
    return functions
