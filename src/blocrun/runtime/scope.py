"""
Variable storage and scope resolution.

Scopes are not a chain of dictionaries: a binding is keyed by the id of
the AST node that owns it, and the scope stack (the ids of the nodes on
the path from the root to the node being executed) decides which
bindings are visible.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from ..values import Value
from ..errors import ScopeStackError


VariableKey = Tuple[str, int]


@dataclass
class VariableStore:
    """Mapping of (name, owner_scope_id) to Value."""
    bindings: Dict[VariableKey, Value] = field(default_factory=dict)

    def get(self, name: str, owner: int) -> Optional[Value]:
        return self.bindings.get((name, owner))

    def set(self, name: str, owner: int, value: Value) -> None:
        self.bindings[(name, owner)] = value

    def snapshot(self) -> Dict[VariableKey, Value]:
        """Copy of the current bindings (values are immutable)."""
        return dict(self.bindings)

    def __contains__(self, key: VariableKey) -> bool:
        return key in self.bindings

    def __len__(self) -> int:
        return len(self.bindings)

    def __iter__(self) -> Iterator[VariableKey]:
        return iter(self.bindings)


class ScopeStack:
    """
    Ids of the nodes from the root to the node currently executing.

    Every push must be matched by a pop of the same id.
    """

    def __init__(self, ids: List[int] = None):
        self._ids: List[int] = list(ids or [])

    def push(self, node_id: int) -> None:
        self._ids.append(node_id)

    def pop(self, expected: int) -> None:
        """Pop the top id, checking it is `expected`."""
        if not self._ids:
            raise ScopeStackError(f"scope stack is empty, expected to pop {expected}")
        popped = self._ids.pop()
        if popped != expected:
            raise ScopeStackError(f"scope stack is unbalanced: popped {popped}, expected {expected}")

    @property
    def path(self) -> Tuple[int, ...]:
        return tuple(self._ids)

    @property
    def top(self) -> Optional[int]:
        return self._ids[-1] if self._ids else None

    def enclosing(self) -> int:
        """Id of the block enclosing the top of the stack (second-to-last entry)."""
        if len(self._ids) < 2:
            raise ScopeStackError(f"no enclosing scope on stack {self._ids}")
        return self._ids[-2]

    def innermost_first(self) -> Iterator[int]:
        return reversed(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __repr__(self) -> str:
        return f"ScopeStack({self._ids})"


def resolve(
    name: str, variables: VariableStore, scope_stack: ScopeStack
) -> Optional[Tuple[Value, int]]:
    """
    Find the nearest visible binding for `name`.

    Searches the scope stack from innermost to outermost and returns
    (value, owner_scope_id) for the first match, or None.
    """
    for scope_id in scope_stack.innermost_first():
        value = variables.get(name, scope_id)
        if value is not None:
            return value, scope_id
    return None
