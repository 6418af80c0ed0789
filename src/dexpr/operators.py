"""Operator semantics over Literals.

Every function here returns a Literal and never raises: failures come back
as error-carrying Literals.

Arithmetic and ordering use numeric promotion. Both operands are tried as
integers first, then both as floats. When neither works the result is an
incompatible-types error. Integer results that leave the signed 64-bit
range are reported as underflow/overflow rather than promoted to float.
"""

from __future__ import annotations

import math
import operator
from typing import Callable

from .errors import DivByZeroError, IncompatibleTypesError, UnderflowOverflowError
from .literal import FALSE, MAX_INT64, MIN_INT64, TRUE, Literal

BinaryOp = Callable[[Literal, Literal], Literal]
UnaryOp = Callable[[Literal], Literal]

POSITIVE_MIN_INT64 = str(MIN_INT64)[1:]


def _bool_literal(value: bool) -> Literal:
    return TRUE if value else FALSE


def _incompatible() -> Literal:
    return Literal(IncompatibleTypesError())


def _int_result(value: int) -> Literal:
    if MIN_INT64 <= value <= MAX_INT64:
        return Literal(value)
    return Literal(UnderflowOverflowError())


def _float_result(value: float, lh: float, rh: float) -> Literal:
    if math.isinf(value) and math.isfinite(lh) and math.isfinite(rh):
        return Literal(UnderflowOverflowError())
    return Literal(value)


def _promote(lh: Literal, rh: Literal) -> tuple[int, int] | tuple[float, float] | None:
    lh_int, rh_int = lh.as_int(), rh.as_int()
    if lh_int is not None and rh_int is not None:
        return lh_int, rh_int
    lh_float, rh_float = lh.as_float(), rh.as_float()
    if lh_float is not None and rh_float is not None:
        return lh_float, rh_float
    return None


def _equal(lh: Literal, rh: Literal) -> bool | None:
    promoted = _promote(lh, rh)
    if promoted is not None:
        return promoted[0] == promoted[1]
    if lh.err is not None or rh.err is not None:
        return None
    # a bool is never equal to the string that spells it
    if lh.is_bool() != rh.is_bool():
        return False
    return str(lh) == str(rh)


def op_eql(lh: Literal, rh: Literal) -> Literal:
    equal = _equal(lh, rh)
    if equal is None:
        return _incompatible()
    return _bool_literal(equal)


def op_neq(lh: Literal, rh: Literal) -> Literal:
    equal = _equal(lh, rh)
    if equal is None:
        return _incompatible()
    return _bool_literal(not equal)


def _ordering(compare: Callable[[float, float], bool]) -> BinaryOp:
    def op(lh: Literal, rh: Literal) -> Literal:
        promoted = _promote(lh, rh)
        if promoted is None:
            return _incompatible()
        return _bool_literal(compare(*promoted))

    op.__name__ = f"op_{compare.__name__}"
    return op


op_lss = _ordering(operator.lt)
op_leq = _ordering(operator.le)
op_gtr = _ordering(operator.gt)
op_geq = _ordering(operator.ge)


def _arithmetic(apply: Callable[[float, float], float]) -> BinaryOp:
    def op(lh: Literal, rh: Literal) -> Literal:
        promoted = _promote(lh, rh)
        if promoted is None:
            return _incompatible()
        lh_value, rh_value = promoted
        if isinstance(lh_value, int):
            return _int_result(apply(lh_value, rh_value))
        return _float_result(apply(lh_value, rh_value), lh_value, rh_value)

    op.__name__ = f"op_{apply.__name__}"
    return op


op_add = _arithmetic(operator.add)
op_sub = _arithmetic(operator.sub)
op_mul = _arithmetic(operator.mul)


def op_quo(lh: Literal, rh: Literal) -> Literal:
    rh_int = rh.as_int()
    if rh_int == 0:
        return Literal(DivByZeroError())
    lh_int = lh.as_int()
    if lh_int is not None and rh_int is not None and lh_int % rh_int == 0:
        return _int_result(lh_int // rh_int)
    lh_float, rh_float = lh.as_float(), rh.as_float()
    if lh_float is None or rh_float is None:
        return _incompatible()
    return _float_result(lh_float / rh_float, lh_float, rh_float)


def op_land(lh: Literal, rh: Literal) -> Literal:
    lh_bool, rh_bool = lh.as_bool(), rh.as_bool()
    if lh_bool is None or rh_bool is None:
        return _incompatible()
    return _bool_literal(lh_bool and rh_bool)


def op_lor(lh: Literal, rh: Literal) -> Literal:
    lh_bool, rh_bool = lh.as_bool(), rh.as_bool()
    if lh_bool is None or rh_bool is None:
        return _incompatible()
    return _bool_literal(lh_bool or rh_bool)


def op_not(x: Literal) -> Literal:
    value = x.as_bool()
    if value is None:
        return _incompatible()
    return _bool_literal(not value)


def op_neg(x: Literal) -> Literal:
    value = x.as_int()
    if value is not None:
        return _int_result(-value)
    # The magnitude of the smallest int64 only exists as text
    if str(x) == POSITIVE_MIN_INT64:
        return Literal(MIN_INT64)
    float_value = x.as_float()
    if float_value is not None:
        return Literal(-float_value)
    return _incompatible()


BINARY_OPERATORS: dict[str, BinaryOp] = {
    "==": op_eql,
    "!=": op_neq,
    "<": op_lss,
    "<=": op_leq,
    ">": op_gtr,
    ">=": op_geq,
    "+": op_add,
    "-": op_sub,
    "*": op_mul,
    "/": op_quo,
    "&&": op_land,
    "||": op_lor,
}

UNARY_OPERATORS: dict[str, UnaryOp] = {
    "-": op_neg,
    "!": op_not,
}
