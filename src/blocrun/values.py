"""
Runtime values for the blocrun engine.

A Value pairs the Python data with its ValueType tag. Values are
immutable and compare by tag and data, so Int(1) != Float(1.0).
"""

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional, Union

from .errors import CoercionError, InvalidType, ValueType


@dataclass(frozen=True)
class Value:
    """
    A runtime value with its type tag.

    The `data` field holds a str, int, float or bool matching `type`.
    """
    data: Any
    type: ValueType

    def __repr__(self) -> str:
        return f"{self.type.name.capitalize()}({self.data!r})"

    def __str__(self) -> str:
        return self.display()

    def display(self) -> str:
        """Textual form used by print and by `{name}` interpolation."""
        if self.type == ValueType.BOOL:
            return "true" if self.data else "false"
        if self.type == ValueType.FLOAT:
            return format_float(self.data)
        return str(self.data)

    def to_bool(self) -> bool:
        """
        Coerce to a boolean for conditions.

        Bool passes through, numbers are true when non-zero, strings
        cannot be coerced and raise CoercionError.
        """
        if self.type == ValueType.BOOL:
            return bool(self.data)
        if self.type in (ValueType.INT, ValueType.FLOAT):
            return self.data != 0
        raise CoercionError(InvalidType(BOOL_ACCEPTED, self.type))

    def to_json(self) -> dict:
        data = self.data
        if self.type == ValueType.FLOAT and not math.isfinite(data):
            data = format_float(data)
        return {"type": self.type.value, "data": data}


BOOL_ACCEPTED = (ValueType.BOOL, ValueType.INT, ValueType.FLOAT)


def format_float(x: float) -> str:
    """
    Format a float in positional notation.

    Integral floats drop the fraction (3.0 -> "3"), non-finite values
    render as inf, -inf and NaN.
    """
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "inf" if x > 0 else "-inf"
    if x.is_integer():
        return str(int(x))
    text = repr(x)
    if "e" in text or "E" in text:
        text = format(Decimal(text), "f")
    return text


# Convenience constructors

def int_val(n: int) -> Value:
    """Create an integer value."""
    return Value(int(n), ValueType.INT)


def float_val(x: float) -> Value:
    """Create a float value."""
    return Value(float(x), ValueType.FLOAT)


def bool_val(b: bool) -> Value:
    """Create a boolean value."""
    return Value(bool(b), ValueType.BOOL)


def string_val(s: str) -> Value:
    """Create a string value."""
    return Value(str(s), ValueType.STRING)


def number_val(x: float) -> Value:
    """Int when `x` has no fractional part, Float otherwise."""
    if math.isfinite(x) and x.is_integer():
        return int_val(int(x))
    return float_val(x)


def wrap_value(data: Union[str, int, float, bool]) -> Value:
    """Wrap a raw Python scalar, inferring its type."""
    if isinstance(data, bool):
        return bool_val(data)
    if isinstance(data, int):
        return int_val(data)
    if isinstance(data, float):
        return float_val(data)
    if isinstance(data, str):
        return string_val(data)
    raise TypeError(f"cannot wrap {type(data).__name__} as a value")


def type_of(value: Optional[Value]) -> ValueType:
    """ValueType of a result, NONE for a void result."""
    return ValueType.NONE if value is None else value.type


def display(value: Optional[Value]) -> str:
    """Display form of a result; a void result renders as '()'."""
    return "()" if value is None else value.display()
