"""Tokenizer and parser for the expression language.

The grammar is the expression subset of Go: arithmetic, comparison and
boolean operators, calls, indexing and array composite literals such as
``[]lit{7, 9, 2}``. Go keywords are not reserved, so ``map`` or ``func``
parse as ordinary identifiers. Integer tokens accept the Go forms ``0x1F``,
``0o17``, ``017``, ``0b101`` and ``1_000``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Union


class ParseError(ValueError):
    """Raised when source text does not form a single valid expression."""


@dataclass(slots=True, frozen=True)
class BasicLit:
    kind: str  # INT, FLOAT, IMAG, CHAR or STRING
    value: str


@dataclass(slots=True, frozen=True)
class Ident:
    name: str


@dataclass(slots=True, frozen=True)
class ParenExpr:
    x: Node


@dataclass(slots=True, frozen=True)
class BinaryExpr:
    x: Node
    op: str
    y: Node


@dataclass(slots=True, frozen=True)
class UnaryExpr:
    op: str
    x: Node


@dataclass(slots=True, frozen=True)
class CallExpr:
    fun: Node
    args: tuple[Node, ...]


@dataclass(slots=True, frozen=True)
class CompositeLit:
    type: Node
    elts: tuple[Node, ...]


@dataclass(slots=True, frozen=True)
class IndexExpr:
    x: Node
    index: Node


@dataclass(slots=True, frozen=True)
class ArrayType:
    len: Optional[Node]
    elt: Node


Node = Union[BasicLit, Ident, ParenExpr, BinaryExpr, UnaryExpr, CallExpr, CompositeLit, IndexExpr, ArrayType]


BINARY_PRECEDENCE = {
    "||": 1,
    "&&": 2,
    "==": 3,
    "!=": 3,
    "<": 3,
    "<=": 3,
    ">": 3,
    ">=": 3,
    "+": 4,
    "-": 4,
    "|": 4,
    "^": 4,
    "*": 5,
    "/": 5,
    "%": 5,
    "<<": 5,
    ">>": 5,
    "&": 5,
    "&^": 5,
}
UNARY_OPERATORS = {"+", "-", "!", "^"}

TOKEN_PATTERN = re.compile(
    r"""
    (?P<space>\s+)
    |(?P<imag>(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?i)
    |(?P<float>(?:[0-9]+\.[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|[0-9]+[eE][+-]?[0-9]+)
    |(?P<int>0[xX](?:_?[0-9a-fA-F])+|0[oO](?:_?[0-7])+|0[bB](?:_?[01])+|[0-9](?:_?[0-9])*)
    |(?P<char>'(?:[^'\\\n]|\\.)*')
    |(?P<string>"(?:[^"\\\n]|\\.)*")
    |(?P<raw>`[^`]*`)
    |(?P<ident>[A-Za-z_][A-Za-z0-9_]*)
    |(?P<op>&&|\|\||==|!=|<=|>=|<<|>>|&\^|[-+*/%<>!&|^])
    |(?P<punct>[()\[\]{},])
    """,
    re.VERBOSE,
)

_KIND_BY_GROUP = {
    "imag": "IMAG",
    "float": "FLOAT",
    "int": "INT",
    "char": "CHAR",
    "string": "STRING",
    "raw": "STRING",
}


@dataclass(slots=True, frozen=True)
class Token:
    kind: str  # group name from TOKEN_PATTERN
    text: str
    position: int


def tokenize(source: str) -> list[Token]:
    tokens: list[Token] = []
    position = 0
    while position < len(source):
        match = TOKEN_PATTERN.match(source, position)
        if match is None:
            raise ParseError(f"unexpected character {source[position]!r} at position {position}")
        kind = match.lastgroup or ""
        if kind != "space":
            tokens.append(Token(kind, match.group(), position))
        position = match.end()
    tokens.append(Token("eof", "", len(source)))
    return tokens


class Parser:
    """Recursive-descent parser with precedence climbing for binary operators."""

    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.position = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.position]

    def advance(self) -> Token:
        token = self.current
        if token.kind != "eof":
            self.position += 1
        return token

    def at(self, text: str) -> bool:
        return self.current.kind in ("op", "punct") and self.current.text == text

    def expect(self, text: str) -> Token:
        if not self.at(text):
            raise ParseError(f"expected {text!r} at position {self.current.position}")
        return self.advance()

    def parse(self) -> Node:
        node = self.binary(1)
        if self.current.kind != "eof":
            raise ParseError(f"unexpected {self.current.text!r} at position {self.current.position}")
        return node

    def binary(self, min_precedence: int) -> Node:
        left = self.unary()
        while self.current.kind == "op":
            op = self.current.text
            precedence = BINARY_PRECEDENCE.get(op, 0)
            if precedence < min_precedence:
                break
            self.advance()
            right = self.binary(precedence + 1)
            left = BinaryExpr(left, op, right)
        return left

    def unary(self) -> Node:
        if self.current.kind == "op" and self.current.text in UNARY_OPERATORS:
            op = self.advance().text
            return UnaryExpr(op, self.unary())
        return self.postfix()

    def postfix(self) -> Node:
        node = self.primary()
        while True:
            if self.at("("):
                self.advance()
                node = CallExpr(node, self.expression_list(")"))
            elif self.at("["):
                self.advance()
                index = self.binary(1)
                self.expect("]")
                node = IndexExpr(node, index)
            else:
                return node

    def expression_list(self, closer: str) -> tuple[Node, ...]:
        items: list[Node] = []
        while not self.at(closer):
            items.append(self.binary(1))
            if not self.at(","):
                break
            self.advance()
        self.expect(closer)
        return tuple(items)

    def primary(self) -> Node:
        token = self.current
        if token.kind in _KIND_BY_GROUP:
            self.advance()
            return BasicLit(_KIND_BY_GROUP[token.kind], token.text)
        if token.kind == "ident":
            self.advance()
            ident = Ident(token.text)
            if self.at("{"):
                return self.composite(ident)
            return ident
        if self.at("("):
            self.advance()
            inner = self.binary(1)
            self.expect(")")
            return ParenExpr(inner)
        if self.at("["):
            return self.composite(self.array_type())
        raise ParseError(f"unexpected {token.text or 'end of expression'!r} at position {token.position}")

    def array_type(self) -> ArrayType:
        self.expect("[")
        length = None if self.at("]") else self.binary(1)
        self.expect("]")
        if self.at("["):
            return ArrayType(length, self.array_type())
        if self.current.kind != "ident":
            raise ParseError(f"expected element type at position {self.current.position}")
        return ArrayType(length, Ident(self.advance().text))

    def composite(self, type_node: Node) -> CompositeLit:
        self.expect("{")
        return CompositeLit(type_node, self.expression_list("}"))


def parse_expr(source: str) -> Node:
    return Parser(tokenize(source)).parse()


def extract_variables(source: str) -> set[str]:
    """Names of the variables an expression reads, excluding called functions."""
    found: set[str] = set()

    def visit(node: Optional[Node]) -> None:
        match node:
            case Ident(name):
                found.add(name)
            case ParenExpr(x) | UnaryExpr(_, x):
                visit(x)
            case BinaryExpr(x, _, y):
                visit(x)
                visit(y)
            case CallExpr(fun, args):
                if not isinstance(fun, Ident):
                    visit(fun)
                for arg in args:
                    visit(arg)
            case CompositeLit(_, elts):
                for elt in elts:
                    visit(elt)
            case IndexExpr(x, index):
                visit(x)
                visit(index)

    visit(parse_expr(source))
    return found
