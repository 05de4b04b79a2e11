"""
Execution trace: the ordered, append-only log of engine actions.

The trace is the only channel between the engine and the presentation
layer that replays a run. Every node visit is bracketed by one Goto on
entry and one Return on exit; kind-specific actions sit in between. The
replay helpers at the bottom of this module rely on that bracketing.
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Iterable, List, Optional, Sequence, Tuple

from ..values import Value
from ..errors import ErrorKind, ErrorMessage


# =============================================================================
# Action types
# =============================================================================

@dataclass(frozen=True)
class ActionType:
    """Base class for action types."""
    tag: ClassVar[str] = "action"

    def json_data(self) -> Any:
        return None


@dataclass(frozen=True)
class Goto(ActionType):
    """Execution entered the node `id`."""
    id: int
    tag: ClassVar[str] = "goto"

    def json_data(self) -> Any:
        return self.id


@dataclass(frozen=True)
class Return(ActionType):
    """
    Execution left a node.

    `errors` is empty on success, in which case `value` is the node's
    result (None for a void result).
    """
    value: Optional[Value] = None
    errors: Tuple[ErrorMessage, ...] = ()
    tag: ClassVar[str] = "return"

    @property
    def ok(self) -> bool:
        return not self.errors

    def json_data(self) -> Any:
        if self.errors:
            return {"err": [e.to_json() for e in self.errors]}
        return {"ok": None if self.value is None else self.value.to_json()}


@dataclass(frozen=True)
class CheckVarNameValidity(ActionType):
    """Result of validating an assigned name; `error` is None when valid."""
    error: Optional[ErrorKind] = None
    tag: ClassVar[str] = "checkVarNameValidity"

    @property
    def ok(self) -> bool:
        return self.error is None

    def json_data(self) -> Any:
        if self.error is None:
            return {"ok": None}
        return {"err": self.error.to_json()}


@dataclass(frozen=True)
class EvaluateRawText(ActionType):
    tag: ClassVar[str] = "evaluateRawText"


@dataclass(frozen=True)
class AssignVariable(ActionType):
    """`value` was stored under key (name, owner_scope_id)."""
    key: Tuple[str, int]
    value: Value
    tag: ClassVar[str] = "assignVariable"

    def json_data(self) -> Any:
        return {"key": list(self.key), "value": self.value.to_json()}


@dataclass(frozen=True)
class CallBuildInFn(ActionType):
    name: str
    tag: ClassVar[str] = "callBuildInFn"

    def json_data(self) -> Any:
        return self.name


@dataclass(frozen=True)
class PushStdout(ActionType):
    text: str
    tag: ClassVar[str] = "pushStdout"

    def json_data(self) -> Any:
        return self.text


@dataclass(frozen=True)
class GetArgs(ActionType):
    tag: ClassVar[str] = "getArgs"


@dataclass(frozen=True)
class ControlFlowEvaluateCondition(ActionType):
    tag: ClassVar[str] = "controlFlowEvaluateCondition"


@dataclass(frozen=True)
class Error(ActionType):
    """A run-level failure recorded outside any node bracket."""
    kind: ErrorKind
    tag: ClassVar[str] = "error"

    def json_data(self) -> Any:
        return self.kind.to_json()


# =============================================================================
# Trace entries
# =============================================================================

@dataclass(frozen=True)
class Action:
    """
    One trace entry.

    `node_id` is the trace address of the action (the node it belongs
    to, None for run-level errors) and `state_index` the index of the
    variable snapshot current when it was recorded.
    """
    type: ActionType
    node_id: Optional[int] = None
    state_index: int = 0

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict for tooling integration."""
        data = {"type": self.type.tag, "nodeId": self.node_id, "stateIndex": self.state_index}
        payload = self.type.json_data()
        if payload is not None:
            data["data"] = payload
        return data


def trace_types(trace: Iterable[Action]) -> List[ActionType]:
    """The action types of a trace, dropping addresses."""
    return [action.type for action in trace]


def trace_to_json(trace: Iterable[Action]) -> List[dict]:
    return [action.to_json() for action in trace]


# =============================================================================
# Replay helpers
# =============================================================================

def active_node_at(trace: Sequence[Action], index: int) -> Optional[int]:
    """
    Id of the node active once the action at `index` has been applied.

    That is the innermost Goto left unmatched by a Return when scanning
    forward from the start of the trace. None outside any node.
    """
    if not 0 <= index < len(trace):
        raise IndexError(f"trace index {index} out of range")
    stack: List[int] = []
    for action in trace[:index + 1]:
        if isinstance(action.type, Goto):
            stack.append(action.type.id)
        elif isinstance(action.type, Return) and stack:
            stack.pop()
    return stack[-1] if stack else None


def _is_move(action: Action) -> bool:
    return isinstance(action.type, (Goto, Return))


def _move_target(action: Action) -> int:
    if isinstance(action.type, Goto):
        return action.type.id
    return action.node_id


def step_bounds(trace: Sequence[Action], index: int) -> Tuple[Optional[int], Optional[int]]:
    """
    Node ids to animate between at step `index`.

    Returns the id addressed by the nearest Goto/Return at or before
    `index` and by the nearest one after it. When no move follows, both
    ids are the same; when none precedes, the first is None.
    """
    if not 0 <= index < len(trace):
        raise IndexError(f"trace index {index} out of range")
    start = None
    for action in reversed(trace[:index + 1]):
        if _is_move(action):
            start = _move_target(action)
            break
    end = start
    for action in trace[index + 1:]:
        if _is_move(action):
            end = _move_target(action)
            break
    return start, end
