"""
Recursive descent parser for arithmetic expressions.

Converts a token stream into an expression tree (see nodes.py).
"""

from typing import List, Optional

from .tokens import Token, TokenType
from .nodes import Expression, Number, BinaryOp, UnaryOp, Call
from ..errors import NotMathError


class Parser:
    """
    Recursive descent parser for arithmetic expressions.

    Usage:
        parser = Parser(tokens)
        expr = parser.parse()

    Binary operators use precedence climbing:
        Lowest:  ||
                 &&
                 == !=
                 < > <= >=
                 + -
                 * / %
    Unary operators (- + !) bind tighter than every binary operator
    except ^, which is right-associative and binds tightest, so that
    -2^2 == -4.
    """

    # Operator precedence levels (higher = tighter binding)
    PRECEDENCE = {
        TokenType.OR: 1,
        TokenType.AND: 2,
        TokenType.EQ: 3,
        TokenType.NE: 3,
        TokenType.LT: 4,
        TokenType.GT: 4,
        TokenType.LE: 4,
        TokenType.GE: 4,
        TokenType.PLUS: 5,
        TokenType.MINUS: 5,
        TokenType.STAR: 6,
        TokenType.SLASH: 6,
        TokenType.PERCENT: 6,
    }

    UNARY_OPERATORS = (TokenType.MINUS, TokenType.PLUS, TokenType.NOT)

    # Nesting guard for parentheses and unary chains
    MAX_DEPTH = 200

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0
        self.depth = 0

    # --- Token helpers ---

    def _current(self) -> Token:
        return self.tokens[self.pos]

    def _is_at_end(self) -> bool:
        return self._current().type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        return self._current().type == token_type

    def _check_any(self, *token_types: TokenType) -> bool:
        return self._current().type in token_types

    def _advance(self) -> Token:
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _match(self, *token_types: TokenType) -> Optional[Token]:
        if self._current().type in token_types:
            return self._advance()
        return None

    def _consume(self, token_type: TokenType, expected: str) -> Token:
        if self._check(token_type):
            return self._advance()
        self._error(expected)

    def _error(self, expected: str):
        token = self._current()
        raise NotMathError(f"expected {expected}, found {token} at offset {token.offset}")

    def _enter(self) -> None:
        self.depth += 1
        if self.depth > self.MAX_DEPTH:
            raise NotMathError("expression nested too deeply")

    def _leave(self) -> None:
        self.depth -= 1

    # --- Grammar ---

    def parse(self) -> Expression:
        """Parse a complete expression; trailing tokens are an error."""
        if self._is_at_end():
            self._error("expression")
        expr = self._parse_binary_expr(0)
        if not self._is_at_end():
            self._error("end of expression")
        return expr

    def _parse_binary_expr(self, min_precedence: int) -> Expression:
        """Parse binary expressions with precedence climbing."""
        left = self._parse_unary_expr()

        while True:
            op_token = self._current()
            precedence = self.PRECEDENCE.get(op_token.type)

            if precedence is None or precedence < min_precedence:
                break

            self._advance()
            right = self._parse_binary_expr(precedence + 1)
            left = BinaryOp(left, op_token.type, right)

        return left

    def _parse_unary_expr(self) -> Expression:
        """Parse unary expressions (-, +, !)."""
        if self._check_any(*self.UNARY_OPERATORS):
            op = self._advance()
            self._enter()
            operand = self._parse_unary_expr()
            self._leave()
            return UnaryOp(op.type, operand)

        return self._parse_power_expr()

    def _parse_power_expr(self) -> Expression:
        """Parse `base ^ exponent` (right-associative)."""
        base = self._parse_primary_expr()
        if self._match(TokenType.CARET):
            self._enter()
            exponent = self._parse_unary_expr()
            self._leave()
            return BinaryOp(base, TokenType.CARET, exponent)
        return base

    def _parse_primary_expr(self) -> Expression:
        """Parse numbers, parenthesised expressions and calls."""
        token = self._current()

        if self._match(TokenType.NUMBER):
            return Number(token.value)

        if self._match(TokenType.LPAREN):
            self._enter()
            expr = self._parse_binary_expr(0)
            self._leave()
            self._consume(TokenType.RPAREN, "')'")
            return expr

        if self._match(TokenType.IDENTIFIER):
            # No free variables: a name is only valid as a call
            self._consume(TokenType.LPAREN, f"'(' after {token.value!r}")
            arguments = []
            if not self._check(TokenType.RPAREN):
                self._enter()
                arguments.append(self._parse_binary_expr(0))
                while self._match(TokenType.COMMA):
                    arguments.append(self._parse_binary_expr(0))
                self._leave()
            self._consume(TokenType.RPAREN, "')'")
            return Call(token.value, tuple(arguments))

        self._error("number, '(' or function call")


def parse(tokens: List[Token]) -> Expression:
    """Convenience function to parse a token list."""
    return Parser(tokens).parse()
