"""
Built-in function registry for the blocrun engine.

Maps function names used by FunctionCall nodes to implementations.
Only `print` exists; every other name is an UnknownFunction error.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, TYPE_CHECKING

from .actions import PushStdout
from ..values import Value, display

if TYPE_CHECKING:
    from .context import ExecutionContext


# implementation(args, ctx, node_id) -> result
BuiltinImpl = Callable[[List[Optional[Value]], "ExecutionContext", int], Optional[Value]]


@dataclass
class BuiltinFunction:
    """A built-in function with its implementation."""
    name: str
    implementation: BuiltinImpl
    doc: str = ""


class BuiltinRegistry:
    """
    Registry of all built-in functions.

    Functions are registered by name and can be looked up for execution.
    """

    def __init__(self):
        self._functions: Dict[str, BuiltinFunction] = {}
        self._register_all()

    def get_function(self, name: str) -> Optional[BuiltinFunction]:
        """Look up a function by name."""
        return self._functions.get(name)

    def register(self, func: BuiltinFunction) -> None:
        """Register a function."""
        self._functions[func.name] = func

    def names(self) -> List[str]:
        return sorted(self._functions)

    def __contains__(self, name: str) -> bool:
        return name in self._functions

    def _register_all(self) -> None:
        """Register all built-in functions."""
        self._register_io_functions()

    # --- I/O Functions ---

    def _register_io_functions(self) -> None:

        def _print(args: List[Optional[Value]], ctx: "ExecutionContext", node_id: int) -> None:
            for arg in args:
                text = display(arg)
                ctx.record(PushStdout(text), node_id)
                ctx.console.write(text)
            return None

        self.register(BuiltinFunction(
            "print",
            _print,
            "Write the display form of each argument to stdout, one line per argument",
        ))


# Global singleton registry
_registry: Optional[BuiltinRegistry] = None


def get_builtin_registry() -> BuiltinRegistry:
    """Get the global built-in function registry."""
    global _registry
    if _registry is None:
        _registry = BuiltinRegistry()
    return _registry
