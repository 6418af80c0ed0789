from __future__ import annotations


class ExprError(ValueError):
    """Base class for every error kind an expression can produce.

    Errors compare equal by class and arguments, so a freshly built
    ``VarNotExistError("bob")`` matches the one an evaluation returned.
    """

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ExprError):
            return NotImplemented
        return type(self) is type(other) and self.args == other.args

    def __hash__(self) -> int:
        return hash((type(self), self.args))

    def __repr__(self) -> str:
        return f"{type(self).__name__}{self.args!r}"


class InvalidSyntaxError(ExprError):
    def __str__(self) -> str:
        return "syntax error"


class IncompatibleTypesError(ExprError):
    def __str__(self) -> str:
        return "incompatible types in expression"


class UnderflowOverflowError(ExprError):
    def __str__(self) -> str:
        return "underflow/overflow"


class DivByZeroError(ExprError):
    def __str__(self) -> str:
        return "divide by zero"


class InvalidCompositeTypeError(ExprError):
    def __str__(self) -> str:
        return "invalid composite type"


class InvalidIndexError(ExprError):
    def __str__(self) -> str:
        return "index out of range"


class TypeNotIndexableError(ExprError):
    def __str__(self) -> str:
        return "type does not support indexing"


class InvalidOpError(ExprError):
    def __init__(self, op: str) -> None:
        super().__init__(op)
        self.op = op

    def __str__(self) -> str:
        return f"invalid operator: {self.op}"


class VarNotExistError(ExprError):
    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"variable doesn't exist: {self.name}"


class FunctionNotExistError(ExprError):
    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"function doesn't exist: {self.name}"


class FunctionError(ExprError):
    """A registered function reported ``err`` when called."""

    def __init__(self, name: str, err: BaseException) -> None:
        super().__init__(name, err)
        self.name = name
        self.err = err

    def __str__(self) -> str:
        return f"function: {self.name}, returned error: {self.err}"


class InvalidExprError(ExprError):
    """Anchors ``err`` to the source text of the expression that produced it."""

    def __init__(self, expr: str, err: BaseException) -> None:
        super().__init__(expr, err)
        self.expr = expr
        self.err = err

    def __str__(self) -> str:
        return f"invalid expression: {self.expr} ({self.err})"
