"""
Expression nodes produced by the arithmetic parser.
"""

from dataclasses import dataclass
from typing import Tuple

from .tokens import TokenType


@dataclass(frozen=True)
class Expression:
    """Base class for all arithmetic expressions."""
    pass


@dataclass(frozen=True)
class Number(Expression):
    """A numeric literal."""
    value: float


@dataclass(frozen=True)
class BinaryOp(Expression):
    """A binary operation (e.g., a + b, a && b)."""
    left: Expression
    operator: TokenType
    right: Expression


@dataclass(frozen=True)
class UnaryOp(Expression):
    """A unary operation (e.g., -n, !n)."""
    operator: TokenType
    operand: Expression


@dataclass(frozen=True)
class Call(Expression):
    """A builtin math function call (e.g., max(1, 2), pi())."""
    name: str
    arguments: Tuple[Expression, ...]
