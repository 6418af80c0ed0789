from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from .compiler import CallFun, Compiler, ENode
from .errors import IncompatibleTypesError, InvalidExprError, InvalidSyntaxError
from .functions import BUILTIN_FUNCTIONS
from .literal import Literal
from .store import ElementStore, ValueStore
from .syntax import ParseError, parse_expr

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Expression:
    """Compiled expression that can be evaluated repeatedly and concurrently."""

    source: str
    root: ENode
    elements: ElementStore
    values: ValueStore

    def eval(self, variables: Mapping[str, Any]) -> Literal:
        result = self.root.eval(variables)
        if result.err is not None:
            return Literal(InvalidExprError(self.source, result.err))
        return result

    def eval_bool(self, variables: Mapping[str, Any]) -> bool:
        result = self.eval(variables)
        value = result.as_bool()
        if value is not None:
            return value
        if isinstance(result.err, InvalidExprError):
            raise result.err
        raise InvalidExprError(self.source, IncompatibleTypesError())

    def __str__(self) -> str:
        return self.source


def compile_expression(source: str, functions: Mapping[str, CallFun] | None = None) -> Expression:
    """Parse and compile ``source``; raises InvalidExprError when it is invalid.

    ``functions`` defaults to the built-in functions. A mapping passed in is
    used as is and consulted by name each time a call is evaluated.
    """
    resolved_functions = functions if functions is not None else BUILTIN_FUNCTIONS
    try:
        tree = parse_expr(source)
    except ParseError as exc:
        logger.info("expression_invalid", extra={"expression": source, "error": str(exc)})
        raise InvalidExprError(source, InvalidSyntaxError()) from exc

    compiler = Compiler(resolved_functions)
    root = compiler.compile(tree)
    if root.err is not None:
        logger.info("expression_invalid", extra={"expression": source, "error": str(root.err)})
        raise InvalidExprError(source, root.err)

    logger.debug(
        "expression_compiled",
        extra={"expression": source, "composites": len(compiler.elements), "interned": len(compiler.values)},
    )
    return Expression(source=source, root=root, elements=compiler.elements, values=compiler.values)


def must_compile(source: str, functions: Mapping[str, CallFun] | None = None) -> Expression:
    """Compile an expression known to be valid, such as a constant in code.

    Raises InvalidExprError like compile_expression; callers are not expected
    to handle it.
    """
    return compile_expression(source, functions)


def evaluate(
    source: str,
    variables: Mapping[str, Any],
    functions: Mapping[str, CallFun] | None = None,
) -> Literal:
    return compile_expression(source, functions).eval(variables)
