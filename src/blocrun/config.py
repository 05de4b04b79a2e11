"""
Runner configuration.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .runtime.builtins import BuiltinRegistry


DEFAULT_MAX_ITERATIONS = 100

# Each block level costs a few interpreter frames; this stays well inside
# Python's default recursion limit.
DEFAULT_MAX_DEPTH = 150

_INT_SETTINGS = ("max_iterations", "max_depth")


def _check_positive(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an int, got {value!r}")
    if value < 1:
        raise ValueError(f"{name} must be positive, got {value}")


@dataclass(frozen=True)
class RunnerConfig:
    """
    Settings for one run.

    max_iterations: loop guard, the number of body executions after which
        a while loop fails with InfiniteLoop.
    builtins: registry used to resolve function calls; None selects the
        shared registry.
    max_depth: deepest block nesting the engine enters before failing
        with NestingTooDeep.
    """
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    builtins: Optional["BuiltinRegistry"] = None
    max_depth: int = DEFAULT_MAX_DEPTH

    def __post_init__(self):
        for name in _INT_SETTINGS:
            _check_positive(name, getattr(self, name))


def load_config(settings: Mapping[str, Any]) -> RunnerConfig:
    """
    Build a RunnerConfig from a plain mapping (e.g. parsed from a file).

    Unknown keys are ignored. Invalid values raise ValueError.
    """
    kwargs = {}
    for name in _INT_SETTINGS:
        if name not in settings:
            continue
        value = settings[name]
        if isinstance(value, str):
            try:
                value = int(value)
            except ValueError:
                raise ValueError(f"{name} must be an int, got {value!r}") from None
        kwargs[name] = value
    return RunnerConfig(**kwargs)
