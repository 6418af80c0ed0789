from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Any

from .errors import InvalidExprError
from .expression import compile_expression


def _parse_value(raw: str) -> Any:
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return raw
    if isinstance(value, (bool, int, float, str)):
        return value
    return raw


def _parse_assignment(raw: str) -> tuple[str, Any]:
    name, sep, value = raw.partition("=")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got {raw!r}")
    return name.strip(), _parse_value(value)


def _load_variables(args: argparse.Namespace) -> dict[str, Any]:
    variables: dict[str, Any] = {}
    if args.vars:
        loaded = json.loads(args.vars)
        if not isinstance(loaded, dict):
            raise ValueError("--vars must be a JSON object")
        for name, value in loaded.items():
            if not isinstance(value, (bool, int, float, str)):
                raise ValueError(f"--vars value for {name!r} must be a number, string or boolean")
            variables[name] = value
    variables.update(dict(args.var))
    return variables


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="dexpr", description="Evaluate a dynamic expression")
    parser.add_argument("expression")
    parser.add_argument("--var", action="append", default=[], type=_parse_assignment, metavar="NAME=VALUE")
    parser.add_argument("--vars", help="JSON object of variables")
    parser.add_argument("--bool", action="store_true", help="require a boolean result")
    parser.add_argument("--log-level", default=os.environ.get("DEXPR_LOG_LEVEL", "WARNING"))
    args = parser.parse_args(argv)

    level = getattr(logging, str(args.log_level).upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s %(message)s")

    try:
        variables = _load_variables(args)
    except ValueError as exc:
        parser.error(str(exc))

    try:
        expression = compile_expression(args.expression)
        if args.bool:
            print("true" if expression.eval_bool(variables) else "false")
            return 0
        result = expression.eval(variables)
    except InvalidExprError as exc:
        print(exc, file=sys.stderr)
        return 1

    if result.err is not None:
        print(result, file=sys.stderr)
        return 1
    print(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
