from .compiler import CallFun, Compiler, ENode, ErrorNode, FunctionNode, LiteralNode, VariableNode
from .errors import (
    DivByZeroError,
    ExprError,
    FunctionError,
    FunctionNotExistError,
    IncompatibleTypesError,
    InvalidCompositeTypeError,
    InvalidExprError,
    InvalidIndexError,
    InvalidOpError,
    InvalidSyntaxError,
    TypeNotIndexableError,
    UnderflowOverflowError,
    VarNotExistError,
)
from .expression import Expression, compile_expression, evaluate, must_compile
from .functions import BUILTIN_FUNCTIONS, resolve_functions
from .literal import FALSE, MAX_INT64, MIN_INT64, TRUE, Literal
from .store import ElementStore, ValueStore
from .syntax import ParseError, extract_variables, parse_expr

__all__ = [
    "BUILTIN_FUNCTIONS",
    "CallFun",
    "Compiler",
    "DivByZeroError",
    "ENode",
    "ElementStore",
    "ErrorNode",
    "Expression",
    "ExprError",
    "FALSE",
    "FunctionError",
    "FunctionNode",
    "FunctionNotExistError",
    "IncompatibleTypesError",
    "InvalidCompositeTypeError",
    "InvalidExprError",
    "InvalidIndexError",
    "InvalidOpError",
    "InvalidSyntaxError",
    "Literal",
    "LiteralNode",
    "MAX_INT64",
    "MIN_INT64",
    "ParseError",
    "TRUE",
    "TypeNotIndexableError",
    "UnderflowOverflowError",
    "ValueStore",
    "VariableNode",
    "compile_expression",
    "evaluate",
    "extract_variables",
    "must_compile",
    "parse_expr",
    "resolve_functions",
]
