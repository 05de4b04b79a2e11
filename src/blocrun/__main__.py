#!/usr/bin/env python3
"""
CLI for the blocrun engine.

Usage:
    python -m blocrun eval TEXT [--var NAME=VALUE ...] [--trace] [--json]
    python -m blocrun classify EXPR

Examples:
    # Evaluate raw text, as a print block would
    python -m blocrun eval "2 + 2 * 10"

    # Interpolate variables bound in the root block
    python -m blocrun eval "{width} * {height}" --var width=3 --var height=2.5

    # Show every step the engine recorded
    python -m blocrun eval "{greeting}" --var greeting=hello --trace

    # Check whether a text is arithmetic
    python -m blocrun classify "sqrt(16) / 3"
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict

from .config import DEFAULT_MAX_ITERATIONS


ROOT_ID = 0


def parse_param(param_str: str) -> tuple:
    """Parse a parameter string like 'name=value' into (name, typed_value)."""
    if '=' not in param_str:
        raise ValueError(f"Invalid parameter format: {param_str} (expected name=value)")

    name, value_str = param_str.split('=', 1)
    name = name.strip()
    value_str = value_str.strip()

    # Try to parse as int, float, bool, or string
    if value_str.lower() == 'true':
        return (name, True)
    elif value_str.lower() == 'false':
        return (name, False)

    try:
        return (name, int(value_str))
    except ValueError:
        pass

    try:
        return (name, float(value_str))
    except ValueError:
        pass

    # Strip quotes if present
    if (value_str.startswith('"') and value_str.endswith('"')) or \
       (value_str.startswith("'") and value_str.endswith("'")):
        value_str = value_str[1:-1]

    return (name, value_str)


def cmd_eval(args):
    """Evaluate TEXT as the argument of a print block."""
    from . import RunnerConfig, run, sequence, call, raw_text, wrap_value

    parameters: Dict[str, Any] = {}
    for param_str in args.var or []:
        try:
            name, value = parse_param(param_str)
            parameters[name] = value
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    try:
        config = RunnerConfig(max_iterations=args.max_iterations)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    program = sequence(ROOT_ID, call(ROOT_ID + 1, "print", raw_text(ROOT_ID + 2, args.text)))
    variables = {(name, ROOT_ID): wrap_value(value) for name, value in parameters.items()}

    result = run(program, config=config, variables=variables)

    if args.json:
        print(json.dumps({
            "stdout": result.console.stdout,
            "errors": [e.to_json() for e in result.errors],
            "trace": [a.to_json() for a in result.trace],
        }, indent=2))
        return 0 if result.success else 1

    if args.trace:
        for index, action in enumerate(result.trace):
            print(f"{index:4d}  node={action.node_id}  state={action.state_index}  {action.type!r}")

    for line in result.console.stdout:
        print(line)

    if not result.success:
        for error in result.errors:
            print(f"Error: {error.format()}", file=sys.stderr)
        return 1

    return 0


def cmd_classify(args):
    """Report whether EXPR is int, float or not arithmetic."""
    from .arith import classify

    print(classify(args.expr).value)
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog='python -m blocrun',
        description='blocrun execution engine',
    )
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Log engine activity to stderr')

    subparsers = parser.add_subparsers(dest='action', required=True)

    # eval command
    eval_parser = subparsers.add_parser('eval', help='Evaluate raw text and print it')
    eval_parser.add_argument('text', help='Raw text, may contain {name} placeholders')
    eval_parser.add_argument('--var', action='append', metavar='NAME=VALUE',
                             help='Bind a variable in the root block (repeatable)')
    eval_parser.add_argument('--max-iterations', type=int, default=DEFAULT_MAX_ITERATIONS,
                             help=f'Loop guard (default: {DEFAULT_MAX_ITERATIONS})')
    eval_parser.add_argument('--trace', action='store_true',
                             help='Print the action trace before the output')
    eval_parser.add_argument('--json', action='store_true',
                             help='Print output, errors and trace as JSON')

    # classify command
    classify_parser = subparsers.add_parser('classify', help='Classify an arithmetic expression')
    classify_parser.add_argument('expr', help='Expression text')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    if args.action == 'eval':
        return cmd_eval(args)
    elif args.action == 'classify':
        return cmd_classify(args)

    return 1


if __name__ == '__main__':
    sys.exit(main())
