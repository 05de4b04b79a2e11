"""
Console sink for printed output.
"""

from dataclasses import dataclass, field
from typing import List


@dataclass
class Console:
    """
    Printed output of a run.

    `stderr` is reserved; no current builtin writes to it.
    """
    stdout: List[str] = field(default_factory=list)
    stderr: List[str] = field(default_factory=list)

    def write(self, text: str) -> None:
        """Append one line to stdout."""
        self.stdout.append(text)

    def __str__(self) -> str:
        return "\n".join(self.stdout)
