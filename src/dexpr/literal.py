from __future__ import annotations

import math
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Union

MIN_INT64 = -(2**63)
MAX_INT64 = 2**63 - 1

INT_PATTERN = re.compile(r"^[+-]?[0-9]+$")
FLOAT_PATTERN = re.compile(r"^[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?$")

Scalar = Union[int, float, bool, str, BaseException]


def _in_int64_range(value: int) -> bool:
    return MIN_INT64 <= value <= MAX_INT64


def format_float(value: float) -> str:
    """Render a float in the shortest positional form that round-trips."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text == "-0":
        return "0"
    return text


@dataclass(slots=True, frozen=True)
class Literal:
    """Immutable dynamically typed scalar: int, float, bool, string or error."""

    value: Scalar

    def __post_init__(self) -> None:
        if not isinstance(self.value, (bool, int, float, str, BaseException)):
            raise TypeError(f"unsupported literal value: {type(self.value).__name__}")

    @classmethod
    def wrap(cls, value: Any) -> Literal:
        return value if isinstance(value, Literal) else cls(value)

    @property
    def err(self) -> BaseException | None:
        return self.value if isinstance(self.value, BaseException) else None

    def as_int(self) -> int | None:
        value = self.value
        if isinstance(value, bool) or isinstance(value, BaseException):
            return None
        if isinstance(value, int):
            return value if _in_int64_range(value) else None
        if isinstance(value, float):
            return _whole_float_to_int(value)
        if INT_PATTERN.match(value):
            parsed = int(value)
            if _in_int64_range(parsed):
                return parsed
        if FLOAT_PATTERN.match(value):
            return _whole_float_to_int(float(value))
        return None

    def as_float(self) -> float | None:
        value = self.value
        if isinstance(value, bool) or isinstance(value, BaseException):
            return None
        if isinstance(value, float):
            return value
        if isinstance(value, int):
            try:
                return float(value)
            except OverflowError:
                return None
        if FLOAT_PATTERN.match(value):
            return float(value)
        return None

    def as_bool(self) -> bool | None:
        return self.value if isinstance(self.value, bool) else None

    def is_bool(self) -> bool:
        return isinstance(self.value, bool)

    def __str__(self) -> str:
        value = self.value
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, float):
            return format_float(value)
        return str(value)

    def __repr__(self) -> str:
        return f"Literal({self.value!r})"


def _whole_float_to_int(value: float) -> int | None:
    if not math.isfinite(value) or not value.is_integer():
        return None
    as_int = int(value)
    return as_int if _in_int64_range(as_int) else None


TRUE = Literal(True)
FALSE = Literal(False)
