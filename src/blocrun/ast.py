"""
Abstract Syntax Tree (AST) node definitions for blocrun programs.

A program is a tree of Node objects. Every node carries an integer id
assigned by the editor that built it; ids double as scope identities for
variable bindings and as addresses in the execution trace, so they must be
kept exactly as given.

NodeData is a closed set of variants:
- Sequence: an ordered block of statements
- While: a (pre-test) loop; do-while is declared but not executed
- IfElse: if / elif* / else
- RawText: literal text, interpolated and optionally evaluated as math
- VariableAssignment: binds a name in the nearest enclosing block
- FunctionCall: call to a builtin
- FunctionDeclaration: declared but not executed
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Tuple, Union


# =============================================================================
# Node payloads
# =============================================================================

@dataclass(frozen=True)
class Sequence:
    """An ordered block of child nodes."""
    children: Tuple["Node", ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "children", tuple(self.children))


@dataclass(frozen=True)
class While:
    """A while loop. `is_do` selects the post-test (do-while) form."""
    condition: "Node"
    sequence: "Node"
    is_do: bool = False


@dataclass(frozen=True)
class Branch:
    """A condition with the block executed when it holds."""
    condition: "Node"
    sequence: "Node"


@dataclass(frozen=True)
class IfElse:
    """An if branch, optional elif branches and an optional else block."""
    if_: Branch
    elif_: Optional[Tuple[Branch, ...]] = None
    else_: Optional["Node"] = None

    def __post_init__(self):
        if self.elif_ is not None:
            object.__setattr__(self, "elif_", tuple(self.elif_))


@dataclass(frozen=True)
class RawText:
    """Literal text. `{name}` placeholders are expanded at run time."""
    text: str


@dataclass(frozen=True)
class VariableAssignment:
    """Assign the value of `value` to `name`."""
    name: str
    value: "Node"


@dataclass(frozen=True)
class FunctionCall:
    """Call the builtin `name` with the values of `argv`."""
    name: str
    argv: Tuple["Node", ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "argv", tuple(self.argv))


@dataclass(frozen=True)
class FunctionDeclaration:
    """A user function declaration (not executable)."""
    name: str
    sequence: "Node"
    argv: Dict[str, VariableAssignment] = field(default_factory=dict, hash=False)


NodeData = Union[
    Sequence,
    While,
    IfElse,
    RawText,
    VariableAssignment,
    FunctionCall,
    FunctionDeclaration,
]


# =============================================================================
# Node
# =============================================================================

@dataclass(frozen=True)
class Node:
    """A node of the program tree."""
    id: int
    data: NodeData

    @property
    def kind(self) -> str:
        """Name of the payload variant, e.g. 'Sequence'."""
        return type(self.data).__name__

    def children(self) -> Iterator["Node"]:
        """Yield direct child nodes in execution order."""
        data = self.data
        if isinstance(data, Sequence):
            yield from data.children
        elif isinstance(data, While):
            yield data.condition
            yield data.sequence
        elif isinstance(data, IfElse):
            yield data.if_.condition
            yield data.if_.sequence
            for branch in data.elif_ or ():
                yield branch.condition
                yield branch.sequence
            if data.else_ is not None:
                yield data.else_
        elif isinstance(data, VariableAssignment):
            yield data.value
        elif isinstance(data, FunctionCall):
            yield from data.argv
        elif isinstance(data, FunctionDeclaration):
            for assignment in data.argv.values():
                yield assignment.value
            yield data.sequence

    def walk(self) -> Iterator["Node"]:
        """Yield this node and all descendants, depth first."""
        yield self
        for child in self.children():
            yield from child.walk()


# =============================================================================
# Convenience constructors
# =============================================================================

def sequence(node_id: int, *children: Node) -> Node:
    """Create a Sequence node."""
    return Node(node_id, Sequence(children))


def while_loop(node_id: int, condition: Node, body: Node, is_do: bool = False) -> Node:
    """Create a While node."""
    return Node(node_id, While(condition, body, is_do))


def if_else(
    node_id: int,
    condition: Node,
    body: Node,
    elifs: Optional[Tuple[Tuple[Node, Node], ...]] = None,
    else_body: Optional[Node] = None,
) -> Node:
    """Create an IfElse node. `elifs` is a sequence of (condition, body) pairs."""
    elif_branches = None
    if elifs is not None:
        elif_branches = tuple(Branch(c, b) for c, b in elifs)
    return Node(node_id, IfElse(Branch(condition, body), elif_branches, else_body))


def raw_text(node_id: int, text: str) -> Node:
    """Create a RawText node."""
    return Node(node_id, RawText(text))


def assign(node_id: int, name: str, value: Node) -> Node:
    """Create a VariableAssignment node."""
    return Node(node_id, VariableAssignment(name, value))


def call(node_id: int, name: str, *argv: Node) -> Node:
    """Create a FunctionCall node."""
    return Node(node_id, FunctionCall(name, argv))
