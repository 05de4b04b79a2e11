"""
Arithmetic evaluation for raw text.

This package provides:
- Lexer: Tokenizes an infix numeric expression
- Parser: Builds an expression tree from tokens
- Evaluator: Computes the float value of the tree
- classify / evaluate: the two entry points used by the engine

Expressions have no free variables; `{name}` placeholders are expanded
before text reaches this package. Every failure mode of the lexer, parser
and evaluator is reported as the single MathParsabilityError (IsNotMath)
kind.

Usage:
    from blocrun.arith import classify, evaluate, MathParsability

    classify("2 + 2")        # MathParsability.INT_PARSABLE
    evaluate("7 / 2")        # Float(3.5)
    classify("hello")        # MathParsability.UNPARSABLE
"""

from enum import Enum

from .tokens import Token, TokenType
from .lexer import Lexer, tokenize
from .parser import Parser, parse
from .nodes import Expression, Number, BinaryOp, UnaryOp, Call
from .evaluator import Evaluator, FUNCTIONS, evaluate_expression
from ..errors import NotMathError, ValueType
from ..values import Value, number_val


class MathParsability(Enum):
    """Outcome of probing a text as an arithmetic expression."""
    INT_PARSABLE = "int"
    FLOAT_PARSABLE = "float"
    UNPARSABLE = "unparsable"


def compute(expression: str) -> float:
    """
    Parse and evaluate `expression` to a float.

    Raises NotMathError if the text is not an arithmetic expression.
    """
    try:
        return evaluate_expression(parse(tokenize(expression)))
    except RecursionError:
        raise NotMathError("expression nested too deeply") from None


def classify(expression: str) -> MathParsability:
    """Probe `expression` without raising."""
    try:
        result = compute(expression)
    except NotMathError:
        return MathParsability.UNPARSABLE
    if number_val(result).type == ValueType.INT:
        return MathParsability.INT_PARSABLE
    return MathParsability.FLOAT_PARSABLE


def evaluate(expression: str) -> Value:
    """
    Evaluate `expression` to an Int (no fractional part) or Float value.

    Raises NotMathError (kind MathParsabilityError) if it does not parse.
    """
    return number_val(compute(expression))


__all__ = [
    'Token',
    'TokenType',
    'Lexer',
    'tokenize',
    'Parser',
    'parse',
    'Expression',
    'Number',
    'BinaryOp',
    'UnaryOp',
    'Call',
    'Evaluator',
    'FUNCTIONS',
    'evaluate_expression',
    'MathParsability',
    'compute',
    'classify',
    'evaluate',
]
