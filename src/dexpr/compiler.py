from __future__ import annotations

import ast
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from . import syntax
from .errors import (
    FunctionError,
    FunctionNotExistError,
    InvalidCompositeTypeError,
    InvalidIndexError,
    InvalidOpError,
    InvalidSyntaxError,
    TypeNotIndexableError,
    VarNotExistError,
)
from .functions import CallFun
from .literal import Literal
from .operators import BINARY_OPERATORS, UNARY_OPERATORS, BinaryOp, UnaryOp
from .store import ElementStore, ValueStore

Vars = Mapping[str, Any]

logger = logging.getLogger(__name__)

LIT_KIND = "lit"

# Variables seen while resolving the element type of a composite literal
KINDS: dict[str, Literal] = {LIT_KIND: Literal(LIT_KIND)}


class ENode:
    """A compiled expression node, evaluated against a variable mapping."""

    __slots__ = ()

    @property
    def err(self) -> BaseException | None:
        return None

    def eval(self, variables: Vars) -> Literal:
        raise NotImplementedError


@dataclass(slots=True, frozen=True)
class LiteralNode(ENode):
    literal: Literal

    def eval(self, variables: Vars) -> Literal:
        return self.literal


@dataclass(slots=True, frozen=True)
class VariableNode(ENode):
    name: str

    def eval(self, variables: Vars) -> Literal:
        if self.name not in variables:
            return Literal(VarNotExistError(self.name))
        return Literal.wrap(variables[self.name])


@dataclass(slots=True, frozen=True)
class FunctionNode(ENode):
    function: Callable[[Vars], Literal]

    def eval(self, variables: Vars) -> Literal:
        return self.function(variables)


@dataclass(slots=True, frozen=True)
class ErrorNode(ENode):
    error: BaseException

    @property
    def err(self) -> BaseException | None:
        return self.error

    def eval(self, variables: Vars) -> Literal:
        return Literal(self.error)


def _syntax_error() -> ErrorNode:
    return ErrorNode(InvalidSyntaxError())


ESCAPE_PATTERN = re.compile(r"\\(x[0-9a-fA-F]{2}|u[0-9a-fA-F]{4}|U[0-9a-fA-F]{8}|[0-3][0-7]{2}|[abfnrtv\\'\"]|.?)", re.DOTALL)


def _check_escapes(text: str) -> None:
    quote = text[0]
    for match in ESCAPE_PATTERN.finditer(text[1:-1]):
        escape = match.group(1)
        if escape[:1] in ("u", "U") and len(escape) > 1:
            code_point = int(escape[1:], 16)
            if code_point > 0x10FFFF or 0xD800 <= code_point <= 0xDFFF:
                raise ValueError(f"invalid code point in literal: {text}")
        elif escape in ("'", '"'):
            # only the enclosing quote may be escaped
            if escape != quote:
                raise ValueError(f"invalid escape in literal: {text}")
        elif len(escape) < 2 and escape not in ("a", "b", "f", "n", "r", "t", "v", "\\"):
            raise ValueError(f"invalid escape in literal: {text}")


def unquote(token: syntax.BasicLit) -> str:
    """Unescape a string or char token, raising ValueError when malformed.

    Only the escapes Go accepts are allowed. Python-only forms such as
    ``\\N{...}`` or unknown escapes like ``\\q`` are rejected.
    """
    text = token.value
    if text.startswith("`"):
        return text[1:-1].replace("\r", "")
    _check_escapes(text)
    try:
        value = ast.literal_eval(text)
    except SyntaxError as exc:
        raise ValueError(f"malformed literal: {text}") from exc
    if not isinstance(value, str):
        raise ValueError(f"malformed literal: {text}")
    if token.kind == "CHAR" and len(value) != 1:
        raise ValueError(f"char literal must hold one character: {text}")
    return value


def _decimal_text(token: str) -> str:
    """Decimal text of an integer token written in any Go base."""
    if token.isdigit() and (len(token) == 1 or token[0] != "0"):
        return token
    if token[0] == "0" and token[1] not in "xXoObB":
        # legacy octal such as 017
        return str(int(token.replace("_", ""), 8))
    return str(int(token, 0))


def _unparen(node: syntax.Node) -> syntax.Node:
    while isinstance(node, syntax.ParenExpr):
        node = node.x
    return node


class Compiler:
    """Turns a syntax tree into ENodes in a single pass.

    Composite literal elements go into ``elements`` and string values are
    interned in ``values``. Both belong to the expression being compiled.
    """

    def __init__(
        self,
        functions: Mapping[str, CallFun],
        elements: ElementStore | None = None,
        values: ValueStore | None = None,
    ) -> None:
        self.functions = functions
        self.elements = elements if elements is not None else ElementStore()
        self.values = values if values is not None else ValueStore()

    def compile(self, node: syntax.Node) -> ENode:
        match node:
            case syntax.BasicLit():
                return self._basic_lit(node)
            case syntax.Ident(name):
                return VariableNode(name)
            case syntax.ParenExpr(x):
                return self.compile(x)
            case syntax.BinaryExpr(x, op, y):
                return self._binary(x, op, y)
            case syntax.UnaryExpr(op, x):
                return self._unary(op, x)
            case syntax.CallExpr(fun, args):
                return self._call(fun, args)
            case syntax.CompositeLit(type_node, elts):
                return self._composite(type_node, elts)
            case syntax.IndexExpr(x, index):
                return self._index(x, index)
            case syntax.ArrayType(_, elt):
                return self.compile(elt)
        return _syntax_error()

    def _basic_lit(self, node: syntax.BasicLit) -> ENode:
        if node.kind == "INT":
            try:
                return LiteralNode(self.values.use(_decimal_text(node.value)))
            except ValueError:
                return _syntax_error()
        if node.kind == "FLOAT":
            # Kept as text so values beyond int64 lose nothing
            return LiteralNode(self.values.use(node.value))
        if node.kind in ("CHAR", "STRING"):
            try:
                return LiteralNode(self.values.use(unquote(node)))
            except ValueError:
                return _syntax_error()
        return _syntax_error()

    def _binary(self, x: syntax.Node, op: str, y: syntax.Node) -> ENode:
        lh = self.compile(x)
        if lh.err is not None:
            return lh
        rh = self.compile(y)
        if rh.err is not None:
            return rh
        apply = BINARY_OPERATORS.get(op)
        if apply is None:
            return ErrorNode(InvalidOpError(op))
        return FunctionNode(_binary_thunk(apply, lh, rh))

    def _unary(self, op: str, x: syntax.Node) -> ENode:
        rh = self.compile(x)
        if rh.err is not None:
            return rh
        apply = UNARY_OPERATORS.get(op)
        if apply is None:
            return ErrorNode(InvalidOpError(op))
        return FunctionNode(_unary_thunk(apply, rh))

    def _compile_all(self, nodes: Sequence[syntax.Node]) -> tuple[ENode, ...] | ENode:
        compiled = []
        for node in nodes:
            enode = self.compile(node)
            if enode.err is not None:
                return enode
            compiled.append(enode)
        return tuple(compiled)

    def _call(self, fun: syntax.Node, args: Sequence[syntax.Node]) -> ENode:
        fun = _unparen(fun)
        if not isinstance(fun, syntax.Ident):
            return _syntax_error()
        compiled = self._compile_all(args)
        if isinstance(compiled, ENode):
            return compiled
        return FunctionNode(_call_thunk(fun.name, compiled, self.functions))

    def _composite(self, type_node: syntax.Node, elts: Sequence[syntax.Node]) -> ENode:
        if not isinstance(type_node, syntax.ArrayType):
            return ErrorNode(InvalidCompositeTypeError())
        kind = self.compile(type_node).eval(KINDS)
        if kind.err is not None or str(kind) != LIT_KIND:
            return ErrorNode(InvalidCompositeTypeError())
        compiled = self._compile_all(elts)
        if isinstance(compiled, ENode):
            return compiled
        return LiteralNode(Literal(self.elements.add(compiled)))

    def _index(self, x: syntax.Node, index: syntax.Node) -> ENode:
        base = self.compile(x)
        if base.err is not None:
            return base
        position = self.compile(index)
        if position.err is not None:
            return position
        base_syntax = _unparen(x)
        if isinstance(base_syntax, syntax.BasicLit):
            if base_syntax.kind != "STRING":
                return FunctionNode(_index_failure_thunk(base, position))
            return FunctionNode(_string_index_thunk(base, position, self.values))
        return FunctionNode(_element_index_thunk(base, position, self.elements))


def _binary_thunk(apply: BinaryOp, lh: ENode, rh: ENode) -> Callable[[Vars], Literal]:
    def thunk(variables: Vars) -> Literal:
        left = lh.eval(variables)
        if left.err is not None:
            return left
        right = rh.eval(variables)
        if right.err is not None:
            return right
        return apply(left, right)

    return thunk


def _unary_thunk(apply: UnaryOp, rh: ENode) -> Callable[[Vars], Literal]:
    def thunk(variables: Vars) -> Literal:
        value = rh.eval(variables)
        if value.err is not None:
            return value
        return apply(value)

    return thunk


def _call_thunk(name: str, args: tuple[ENode, ...], functions: Mapping[str, CallFun]) -> Callable[[Vars], Literal]:
    def thunk(variables: Vars) -> Literal:
        values: list[Literal] = []
        for arg in args:
            value = arg.eval(variables)
            if value.err is not None:
                return value
            values.append(value)
        function = functions.get(name)
        if function is None:
            return Literal(FunctionNotExistError(name))
        try:
            result = Literal.wrap(function(values))
        except Exception as exc:
            logger.debug("function_error", extra={"function": name, "error": str(exc)})
            return Literal(FunctionError(name, exc))
        if result.err is not None:
            return Literal(FunctionError(name, result.err))
        return result

    return thunk


def _evaluate_pair(base: ENode, position: ENode, variables: Vars) -> tuple[Literal, int] | Literal:
    base_value = base.eval(variables)
    if base_value.err is not None:
        return base_value
    index_value = position.eval(variables)
    if index_value.err is not None:
        return index_value
    index = index_value.as_int()
    if index is None:
        return Literal(InvalidSyntaxError())
    return base_value, index


def _string_index_thunk(base: ENode, position: ENode, values: ValueStore) -> Callable[[Vars], Literal]:
    def thunk(variables: Vars) -> Literal:
        pair = _evaluate_pair(base, position, variables)
        if isinstance(pair, Literal):
            return pair
        text, index = pair
        data = str(text).encode("utf-8")
        if not 0 <= index < len(data):
            return Literal(InvalidIndexError())
        return values.use(chr(data[index]))

    return thunk


def _index_failure_thunk(base: ENode, position: ENode) -> Callable[[Vars], Literal]:
    def thunk(variables: Vars) -> Literal:
        pair = _evaluate_pair(base, position, variables)
        if isinstance(pair, Literal):
            return pair
        return Literal(TypeNotIndexableError())

    return thunk


def _element_index_thunk(base: ENode, position: ENode, elements: ElementStore) -> Callable[[Vars], Literal]:
    def thunk(variables: Vars) -> Literal:
        pair = _evaluate_pair(base, position, variables)
        if isinstance(pair, Literal):
            return pair
        handle_value, index = pair
        handle = handle_value.as_int()
        if handle is None or not 0 <= handle < len(elements):
            return Literal(TypeNotIndexableError())
        elts = elements.get(handle)
        if not 0 <= index < len(elts):
            return Literal(InvalidIndexError())
        return elts[index].eval(variables)

    return thunk
