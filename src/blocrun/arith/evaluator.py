"""
Tree evaluator for arithmetic expressions.

All arithmetic is done on floats with IEEE semantics: division by zero
and overflow give inf or NaN instead of raising. Comparison and logical
operators give 1.0 or 0.0. The remainder operator truncates toward zero
(math.fmod), so -7 % 3 == -1.
"""

import math
from typing import Callable, Dict, List, Optional, Tuple

from .nodes import Expression, Number, BinaryOp, UnaryOp, Call
from .tokens import TokenType
from ..errors import NotMathError


def _truth(x: float) -> float:
    return 1.0 if x else 0.0


def _divide(a: float, b: float) -> float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _remainder(a: float, b: float) -> float:
    if b == 0 or math.isinf(a):
        return math.nan
    return math.fmod(a, b)


def _power(a: float, b: float) -> float:
    try:
        return math.pow(a, b)
    except OverflowError:
        return math.inf
    except (ValueError, ZeroDivisionError):
        if a == 0:
            return math.inf
        return math.nan


BINARY_OPERATIONS: Dict[TokenType, Callable[[float, float], float]] = {
    TokenType.PLUS: lambda a, b: a + b,
    TokenType.MINUS: lambda a, b: a - b,
    TokenType.STAR: lambda a, b: a * b,
    TokenType.SLASH: _divide,
    TokenType.PERCENT: _remainder,
    TokenType.CARET: _power,
    TokenType.LT: lambda a, b: _truth(a < b),
    TokenType.GT: lambda a, b: _truth(a > b),
    TokenType.LE: lambda a, b: _truth(a <= b),
    TokenType.GE: lambda a, b: _truth(a >= b),
    TokenType.EQ: lambda a, b: _truth(a == b),
    TokenType.NE: lambda a, b: _truth(a != b),
    TokenType.AND: lambda a, b: _truth(a != 0 and b != 0),
    TokenType.OR: lambda a, b: _truth(a != 0 or b != 0),
}


# --- Builtin math functions ---

def _round(x: float) -> float:
    # Half away from zero
    if not math.isfinite(x):
        return x
    return math.copysign(math.floor(abs(x) + 0.5), x)


def _sign(x: float) -> float:
    if x == 0 or math.isnan(x):
        return x
    return math.copysign(1.0, x)


def _sqrt(x: float) -> float:
    return math.sqrt(x) if x >= 0 else math.nan


def _log(*args: float) -> float:
    if len(args) == 1:
        base, x = 10.0, args[0]
    else:
        base, x = args
    if x == 0:
        return -math.inf
    if x < 0 or base <= 0 or base == 1:
        return math.nan
    return math.log(x, base)


def _safe_trig(func: Callable[[float], float]) -> Callable[[float], float]:
    def wrapper(x: float) -> float:
        if math.isinf(x):
            return math.nan
        return func(x)
    return wrapper


def _truncate(x: float) -> float:
    return float(math.trunc(x)) if math.isfinite(x) else x


def _floor(x: float) -> float:
    return float(math.floor(x)) if math.isfinite(x) else x


def _ceil(x: float) -> float:
    return float(math.ceil(x)) if math.isfinite(x) else x


# name -> (implementation, min arity, max arity or None for variadic)
FUNCTIONS: Dict[str, Tuple[Callable[..., float], int, Optional[int]]] = {
    "pi": (lambda: math.pi, 0, 0),
    "e": (lambda: math.e, 0, 0),
    "abs": (abs, 1, 1),
    "sign": (_sign, 1, 1),
    "int": (_truncate, 1, 1),
    "floor": (_floor, 1, 1),
    "ceil": (_ceil, 1, 1),
    "round": (_round, 1, 1),
    "sqrt": (_sqrt, 1, 1),
    "log": (_log, 1, 2),
    "sin": (_safe_trig(math.sin), 1, 1),
    "cos": (_safe_trig(math.cos), 1, 1),
    "tan": (_safe_trig(math.tan), 1, 1),
    "min": (min, 1, None),
    "max": (max, 1, None),
}


def _unary(operator: TokenType, operand: float) -> float:
    if operator == TokenType.MINUS:
        return -operand
    if operator == TokenType.NOT:
        return _truth(operand == 0)
    return operand


class Evaluator:
    """
    Evaluates an expression tree to a float.

    The parser builds left-deep BinaryOp chains for flat expressions such
    as 1+1+...+1, so the tree is walked post-order with an explicit stack
    rather than by recursion.
    """

    def evaluate(self, expr: Expression) -> float:
        values: List[float] = []
        # (node, children already evaluated)
        pending: List[Tuple[Expression, bool]] = [(expr, False)]

        while pending:
            node, ready = pending.pop()
            if isinstance(node, Number):
                values.append(node.value)
            elif isinstance(node, BinaryOp):
                if ready:
                    right = values.pop()
                    left = values.pop()
                    values.append(BINARY_OPERATIONS[node.operator](left, right))
                else:
                    pending.append((node, True))
                    pending.append((node.right, False))
                    pending.append((node.left, False))
            elif isinstance(node, UnaryOp):
                if ready:
                    values.append(_unary(node.operator, values.pop()))
                else:
                    pending.append((node, True))
                    pending.append((node.operand, False))
            elif isinstance(node, Call):
                if ready:
                    split = len(values) - len(node.arguments)
                    arguments = values[split:]
                    del values[split:]
                    values.append(self._eval_call(node, arguments))
                else:
                    self._check_call(node)
                    pending.append((node, True))
                    for argument in reversed(node.arguments):
                        pending.append((argument, False))
            else:
                raise NotMathError(f"unknown expression type: {type(node).__name__}")

        return values.pop()

    def _check_call(self, call: Call) -> None:
        entry = FUNCTIONS.get(call.name)
        if entry is None:
            raise NotMathError(f"unknown function: {call.name}")
        _, min_args, max_args = entry
        count = len(call.arguments)
        if count < min_args or (max_args is not None and count > max_args):
            raise NotMathError(f"wrong number of arguments for {call.name}: {count}")

    def _eval_call(self, call: Call, arguments: List[float]) -> float:
        func = FUNCTIONS[call.name][0]
        return float(func(*arguments))


def evaluate_expression(expr: Expression) -> float:
    """Convenience function to evaluate an expression tree."""
    return Evaluator().evaluate(expr)
