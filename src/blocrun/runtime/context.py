"""
Execution context for the blocrun engine.

Holds every aggregate a run mutates (variables, scope stack, console,
trace, state history) so they can be threaded through the recursive
evaluator as one object. A context lives for exactly one run.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from .actions import Action, ActionType, Goto, Return
from .console import Console
from .scope import ScopeStack, VariableKey, VariableStore
from ..ast import Node
from ..config import RunnerConfig
from ..errors import ErrorKind, ErrorMessage, ExecutionError
from ..values import Value


State = Dict[VariableKey, Value]


@dataclass
class ExecutionContext:
    """
    The full execution state of one run.

    Tracks:
    - Variable bindings keyed by (name, owner scope id)
    - The scope stack of node ids being executed
    - Printed output
    - The action trace
    - Variable snapshots, one per successful assignment
    """
    variables: VariableStore = field(default_factory=VariableStore)
    scope_stack: ScopeStack = field(default_factory=ScopeStack)
    console: Console = field(default_factory=Console)
    trace: List[Action] = field(default_factory=list)
    states: List[State] = field(default_factory=list)
    config: RunnerConfig = field(default_factory=RunnerConfig)

    def __post_init__(self):
        if not self.states:
            self.states.append(self.variables.snapshot())

    @property
    def state_index(self) -> int:
        return len(self.states) - 1

    def record(self, action_type: ActionType, node_id: Optional[int] = None) -> None:
        """Append an action to the trace."""
        self.trace.append(Action(action_type, node_id, self.state_index))

    def enter(self, node: Node) -> None:
        """Push the node on the scope stack and record the Goto."""
        self.scope_stack.push(node.id)
        self.record(Goto(node.id), node.id)

    def leave(
        self,
        node: Node,
        value: Optional[Value] = None,
        errors: Tuple[ErrorMessage, ...] = (),
    ) -> None:
        """Pop the node from the scope stack and record the Return."""
        self.scope_stack.pop(node.id)
        self.record(Return(value, tuple(errors)), node.id)

    def assign(self, name: str, owner: int, value: Value) -> None:
        """Store a binding and take a state snapshot."""
        self.variables.set(name, owner, value)
        self.states.append(self.variables.snapshot())

    def error(self, kind: ErrorKind, custom_message: str = None) -> ExecutionError:
        """Build an ExecutionError located at the current scope path."""
        return ExecutionError.at(self.scope_stack.path, kind, custom_message)


def create_context(
    variables: Optional[Mapping[VariableKey, Value]] = None,
    config: Optional[RunnerConfig] = None,
) -> ExecutionContext:
    """
    Create a fresh context for a run.

    Args:
        variables: Initial bindings, keyed by (name, owner scope id)
        config: Runner settings (defaults when omitted)

    Returns:
        An ExecutionContext whose first state is the initial bindings
    """
    store = VariableStore(dict(variables or {}))
    return ExecutionContext(variables=store, config=config or RunnerConfig())
