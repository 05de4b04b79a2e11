"""
Runtime error model for the blocrun engine.

Error code ranges:
- E40x, E41x: Execution errors (structured, reported to the caller as data)

Structured errors travel as ErrorMessage values inside an ExecutionError.
Internal consistency failures (scope stack imbalance) are plain
RuntimeErrors and are never reported as user errors.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, List, Optional, Tuple


class ErrorLevel(Enum):
    """Severity levels for error messages."""
    WARNING = "warning"
    ERROR = "error"


class ValueType(Enum):
    """Runtime value tags, as reported in type errors."""
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    NONE = "none"


class ExpansionFailure(Enum):
    """Reasons a `{name}` interpolation can fail."""
    VARIABLE_NOT_EXPANDABLE = "variableNotExpandable"
    MISSING_CLOSING_BRACKET = "missingClosingBracket"
    MISSING_OPENING_BRACKET = "missingOpeningBracket"
    BRACKET_ORDER = "bracketOrder"
    VARIABLE_NOT_FOUND = "variableNotFound"


class NameFailure(Enum):
    """Reasons a variable name is rejected."""
    EMPTY = "empty"
    INVALID_FIRST_CHAR = "invalidFirstChar"


# =============================================================================
# Error kinds
# =============================================================================

@dataclass(frozen=True)
class ErrorKind:
    """Base class for all error kinds."""
    code: ClassVar[str] = "E400"
    tag: ClassVar[str] = "error"

    def describe(self) -> str:
        return self.tag

    def to_json(self) -> dict:
        return {"type": self.tag}


@dataclass(frozen=True)
class InfiniteLoop(ErrorKind):
    """A while loop reached the iteration cap."""
    reaches: int
    max: int
    code: ClassVar[str] = "E401"
    tag: ClassVar[str] = "infiniteLoop"

    def describe(self) -> str:
        return f"max iteration reached ({self.reaches}/{self.max})"

    def to_json(self) -> dict:
        return {"type": self.tag, "data": {"reaches": self.reaches, "max": self.max}}


@dataclass(frozen=True)
class VariableExpansionError(ErrorKind):
    """A `{name}` placeholder could not be expanded."""
    reason: ExpansionFailure
    name: Optional[str] = None
    code: ClassVar[str] = "E402"
    tag: ClassVar[str] = "variableExpansionError"

    def describe(self) -> str:
        if self.reason == ExpansionFailure.VARIABLE_NOT_FOUND:
            return f"variable '{self.name}' not found"
        return {
            ExpansionFailure.VARIABLE_NOT_EXPANDABLE: "placeholder does not name a variable",
            ExpansionFailure.MISSING_CLOSING_BRACKET: "missing closing bracket '}'",
            ExpansionFailure.MISSING_OPENING_BRACKET: "missing opening bracket '{'",
            ExpansionFailure.BRACKET_ORDER: "brackets cannot be nested",
        }[self.reason]

    def to_json(self) -> dict:
        data: dict = {"type": self.reason.value}
        if self.name is not None:
            data["data"] = self.name
        return {"type": self.tag, "data": data}


@dataclass(frozen=True)
class RootIsNotSequence(ErrorKind):
    """The program root must be a Sequence node."""
    code: ClassVar[str] = "E403"
    tag: ClassVar[str] = "rootIsNotSequence"

    def describe(self) -> str:
        return "the root node is not a sequence"


@dataclass(frozen=True)
class InvalidType(ErrorKind):
    """A value of the wrong type was used, e.g. a string as a condition."""
    accepted: Tuple[ValueType, ...]
    found: ValueType
    code: ClassVar[str] = "E404"
    tag: ClassVar[str] = "invalidType"

    def describe(self) -> str:
        accepted = ", ".join(t.value for t in self.accepted)
        return f"expected one of ({accepted}), found {self.found.value}"

    def to_json(self) -> dict:
        return {
            "type": self.tag,
            "data": {
                "accepted": [t.value for t in self.accepted],
                "found": self.found.value,
            },
        }


@dataclass(frozen=True)
class VariableNameError(ErrorKind):
    """A variable name is not a valid identifier."""
    reason: NameFailure
    code: ClassVar[str] = "E405"
    tag: ClassVar[str] = "variableNameError"

    def describe(self) -> str:
        if self.reason == NameFailure.EMPTY:
            return "variable name is empty"
        return "variable name must start with a letter or '_'"

    def to_json(self) -> dict:
        return {"type": self.tag, "data": {"type": self.reason.value}}


@dataclass(frozen=True)
class MathParsabilityError(ErrorKind):
    """
    The text is not an arithmetic expression.

    Every lexer/parser/evaluator failure maps to this single kind.
    """
    code: ClassVar[str] = "E406"
    tag: ClassVar[str] = "mathParsabilityError"

    def describe(self) -> str:
        return "text is not a math expression"

    def to_json(self) -> dict:
        return {"type": self.tag, "data": {"type": "isNotMath"}}


@dataclass(frozen=True)
class VoidAssignment(ErrorKind):
    """The right-hand side of an assignment produced no value."""
    name: str
    code: ClassVar[str] = "E407"
    tag: ClassVar[str] = "voidAssignment"

    def describe(self) -> str:
        return f"cannot assign void value to variable '{self.name}'"

    def to_json(self) -> dict:
        return {"type": self.tag, "data": self.name}


@dataclass(frozen=True)
class UnknownFunction(ErrorKind):
    """A call names a function that is not a builtin."""
    name: str
    code: ClassVar[str] = "E408"
    tag: ClassVar[str] = "unknownFunction"

    def describe(self) -> str:
        return f"unknown function '{self.name}'"

    def to_json(self) -> dict:
        return {"type": self.tag, "data": self.name}


@dataclass(frozen=True)
class Unimplemented(ErrorKind):
    """A language feature that the engine does not execute yet."""
    feature: str
    code: ClassVar[str] = "E409"
    tag: ClassVar[str] = "unimplemented"

    def describe(self) -> str:
        return f"{self.feature} is not implemented"

    def to_json(self) -> dict:
        return {"type": self.tag, "data": self.feature}


@dataclass(frozen=True)
class NestingTooDeep(ErrorKind):
    """The program nests blocks deeper than the engine can follow."""
    max: int
    code: ClassVar[str] = "E410"
    tag: ClassVar[str] = "nestingTooDeep"

    def describe(self) -> str:
        return f"blocks nested deeper than {self.max} levels"

    def to_json(self) -> dict:
        return {"type": self.tag, "data": {"max": self.max}}


# =============================================================================
# Messages and exceptions
# =============================================================================

@dataclass(frozen=True)
class ErrorMessage:
    """An error attached to the scope path where it happened."""
    scope_path: Tuple[int, ...]
    error_kind: ErrorKind
    custom_message: Optional[str] = None
    level: ErrorLevel = ErrorLevel.ERROR

    @property
    def code(self) -> str:
        return self.error_kind.code

    @property
    def node_id(self) -> Optional[int]:
        """Id of the innermost node on the scope path, if any."""
        return self.scope_path[-1] if self.scope_path else None

    def format(self) -> str:
        """Format the message for display."""
        path = "/".join(str(i) for i in self.scope_path) or "<root>"
        text = f"{path}: {self.level.value}[{self.code}]: {self.error_kind.describe()}"
        if self.custom_message:
            text += f" ({self.custom_message})"
        return text

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict for tooling integration."""
        data = {
            "idPath": list(self.scope_path),
            "error": self.error_kind.to_json(),
            "level": self.level.value,
        }
        if self.custom_message is not None:
            data["customMessage"] = self.custom_message
        return data

    def __str__(self) -> str:
        return self.format()


class BlocrunError(Exception):
    """Base exception for blocrun errors."""
    pass


class ExecutionError(BlocrunError):
    """Raised by the engine when a node fails with structured errors."""

    def __init__(self, messages: List[ErrorMessage]):
        self.messages = list(messages)
        super().__init__("; ".join(m.format() for m in self.messages))

    @classmethod
    def at(cls, scope_path, kind: ErrorKind, custom_message: str = None) -> "ExecutionError":
        """Build an error with a single message at the given scope path."""
        return cls([ErrorMessage(tuple(scope_path), kind, custom_message)])


class ScopeStackError(RuntimeError):
    """The scope stack lost its push/pop balance. Always an engine bug."""
    pass


class KindError(BlocrunError):
    """Base for exceptions that carry a bare ErrorKind (no scope path yet)."""

    def __init__(self, kind: ErrorKind):
        self.kind = kind
        super().__init__(kind.describe())


class ExpansionError(KindError):
    """Raised by variable interpolation."""
    pass


class NotMathError(KindError):
    """Raised by the arithmetic evaluator."""

    def __init__(self, detail: str = ""):
        super().__init__(MathParsabilityError())
        # Kept for debugging only; never part of the error surface.
        self.detail = detail


class CoercionError(KindError):
    """Raised when a value cannot be used as a boolean."""
    pass
