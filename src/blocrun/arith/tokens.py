"""
Token types for the arithmetic lexer.
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Dict


class TokenType(Enum):
    """All token types recognized by the arithmetic lexer."""

    # --- Literals ---
    NUMBER = auto()             # 42, 3.5, .5, 1e-9

    # --- Identifiers (builtin function names only) ---
    IDENTIFIER = auto()

    # --- Arithmetic operators ---
    PLUS = auto()               # +
    MINUS = auto()              # -
    STAR = auto()               # *
    SLASH = auto()              # /
    PERCENT = auto()            # %
    CARET = auto()              # ^ (power)

    # --- Comparison operators ---
    LT = auto()                 # <
    GT = auto()                 # >
    LE = auto()                 # <=
    GE = auto()                 # >=
    EQ = auto()                 # ==
    NE = auto()                 # !=

    # --- Logical operators ---
    AND = auto()                # &&
    OR = auto()                 # ||
    NOT = auto()                # !

    # --- Delimiters ---
    LPAREN = auto()             # (
    RPAREN = auto()             # )
    COMMA = auto()              # ,

    # --- Special ---
    EOF = auto()


@dataclass(frozen=True)
class Token:
    """A single token from the lexer."""
    type: TokenType
    value: Any              # float for NUMBER, str for IDENTIFIER
    lexeme: str
    offset: int             # 0-indexed position in the expression

    def __str__(self) -> str:
        if self.type in (TokenType.NUMBER, TokenType.IDENTIFIER):
            return f"{self.type.name}({self.value!r})"
        return self.type.name


# Single-character operators. Two-character ones are handled by the lexer.
SINGLE_CHAR_TOKENS: Dict[str, TokenType] = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "%": TokenType.PERCENT,
    "^": TokenType.CARET,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ",": TokenType.COMMA,
}

DOUBLE_CHAR_TOKENS: Dict[str, TokenType] = {
    "<=": TokenType.LE,
    ">=": TokenType.GE,
    "==": TokenType.EQ,
    "!=": TokenType.NE,
    "&&": TokenType.AND,
    "||": TokenType.OR,
}

# Characters that may stand alone when not followed by their pair.
LONE_CHAR_TOKENS: Dict[str, TokenType] = {
    "<": TokenType.LT,
    ">": TokenType.GT,
    "!": TokenType.NOT,
}
