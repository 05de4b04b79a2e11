"""
Expansion of `{name}` placeholders in raw text.
"""

from typing import List

from .scope import ScopeStack, VariableStore, resolve
from ..errors import ExpansionError, ExpansionFailure, VariableExpansionError


def _fail(reason: ExpansionFailure, name: str = None) -> ExpansionError:
    return ExpansionError(VariableExpansionError(reason, name))


def expand_variables(text: str, variables: VariableStore, scope_stack: ScopeStack) -> str:
    """
    Replace every `{name}` in `text` with the display form of the variable.

    At most one placeholder may be open at a time. Raises ExpansionError
    for malformed brackets, placeholders that do not hold a single name,
    and names with no visible binding.
    """
    parts: List[str] = []
    placeholder: List[str] = []
    is_open = False

    for ch in text:
        if ch == '{':
            if is_open:
                raise _fail(ExpansionFailure.BRACKET_ORDER)
            is_open = True
            placeholder = []
        elif ch == '}':
            if not is_open:
                raise _fail(ExpansionFailure.MISSING_OPENING_BRACKET)
            is_open = False
            name = "".join(placeholder).strip()
            if not name or any(c.isspace() for c in name):
                raise _fail(ExpansionFailure.VARIABLE_NOT_EXPANDABLE)
            found = resolve(name, variables, scope_stack)
            if found is None:
                raise _fail(ExpansionFailure.VARIABLE_NOT_FOUND, name)
            parts.append(found[0].display())
        elif is_open:
            placeholder.append(ch)
        else:
            parts.append(ch)

    if is_open:
        raise _fail(ExpansionFailure.MISSING_CLOSING_BRACKET)

    return "".join(parts)
