"""
Lexer for arithmetic expressions.

Converts an (already interpolated) text into tokens for the parser.
Supports:
- Decimal numbers with optional fraction and exponent (42, 3.5, .5, 1e-9)
- Identifiers (only meaningful as builtin function names)
- Arithmetic, comparison and logical operators
- Parentheses and commas
"""

from typing import Iterator, List

from .tokens import (
    Token, TokenType, SINGLE_CHAR_TOKENS, DOUBLE_CHAR_TOKENS, LONE_CHAR_TOKENS,
)
from ..errors import NotMathError


def _is_digit(ch: str) -> bool:
    return ch in "0123456789"


class Lexer:
    """
    Tokenizer for arithmetic expressions.

    Usage:
        tokens = Lexer("2 * (3 + 4)").tokenize()
    """

    def __init__(self, source: str):
        self.source = source
        self.pos = 0

    def _peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx >= len(self.source):
            return '\0'
        return self.source[idx]

    def _is_at_end(self) -> bool:
        return self.pos >= len(self.source)

    def _make_token(self, token_type: TokenType, value, start: int) -> Token:
        return Token(token_type, value, self.source[start:self.pos], start)

    def _scan_number(self) -> Token:
        start = self.pos
        while _is_digit(self._peek()):
            self.pos += 1
        if self._peek() == '.':
            self.pos += 1
            while _is_digit(self._peek()):
                self.pos += 1
        if self.source[start:self.pos] == '.':
            raise NotMathError(f"lone '.' at offset {start}")

        # Exponent only when digits follow, otherwise 'e' starts an identifier
        if self._peek() in 'eE':
            sign = 1 if self._peek(1) in '+-' else 0
            if _is_digit(self._peek(1 + sign)):
                self.pos += 1 + sign
                while _is_digit(self._peek()):
                    self.pos += 1

        lexeme = self.source[start:self.pos]
        return self._make_token(TokenType.NUMBER, float(lexeme), start)

    def _scan_identifier(self) -> Token:
        start = self.pos
        while self._peek().isalnum() or self._peek() == '_':
            self.pos += 1
        return self._make_token(TokenType.IDENTIFIER, self.source[start:self.pos], start)

    def _scan_token(self) -> Token:
        ch = self._peek()
        start = self.pos

        if _is_digit(ch) or (ch == '.' and _is_digit(self._peek(1))):
            return self._scan_number()
        if ch.isalpha() or ch == '_':
            return self._scan_identifier()

        pair = ch + self._peek(1)
        if pair in DOUBLE_CHAR_TOKENS:
            self.pos += 2
            return self._make_token(DOUBLE_CHAR_TOKENS[pair], None, start)
        if ch in LONE_CHAR_TOKENS:
            self.pos += 1
            return self._make_token(LONE_CHAR_TOKENS[ch], None, start)
        if ch in SINGLE_CHAR_TOKENS:
            self.pos += 1
            return self._make_token(SINGLE_CHAR_TOKENS[ch], None, start)

        raise NotMathError(f"unexpected character {ch!r} at offset {start}")

    def __iter__(self) -> Iterator[Token]:
        while True:
            while not self._is_at_end() and self._peek().isspace():
                self.pos += 1
            if self._is_at_end():
                yield Token(TokenType.EOF, None, "", self.pos)
                return
            yield self._scan_token()

    def tokenize(self) -> List[Token]:
        """Tokenize the whole expression, ending with an EOF token."""
        return list(self)


def tokenize(source: str) -> List[Token]:
    """Convenience function to tokenize an expression."""
    return Lexer(source).tokenize()
