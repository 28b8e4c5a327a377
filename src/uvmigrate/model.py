# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


CHECK_KINDS = ("tool", "file", "command")


@dataclass(frozen=True)
class Check:
    """
    A probe against the operator's machine.

    kind:
      - "tool"    -> target is an executable that must be on PATH
      - "file"    -> target is a path (relative to the project dir) that must exist
      - "command" -> target is a shell command that must exit 0
    """
    kind: str
    target: str

    def __post_init__(self) -> None:
        if self.kind not in CHECK_KINDS:
            raise ValueError(f"Unknown check kind {self.kind!r} (expected one of {CHECK_KINDS})")

    def describe(self) -> str:
        if self.kind == "tool":
            return f"`{self.target}` is installed"
        if self.kind == "file":
            return f"`{self.target}` exists"
        return f"`{self.target}` succeeds"


@dataclass(frozen=True)
class Snippet:
    """An illustrative file the operator drops into the project."""
    path: str
    content: str
    language: str = ""


@dataclass(frozen=True)
class Step:
    """A single runbook step: prose + the commands an operator types.

    Sequences are tuples so a step stays immutable once authored.
    """
    id: str
    title: str
    description: str = ""
    commands: Tuple[str, ...] = ()
    fallback: Tuple[str, ...] = ()
    check: Optional[Check] = None
    requires: Tuple[Check, ...] = ()
    skip_if: Optional[Check] = None
    produces: Tuple[str, ...] = ()
    consumes: Tuple[str, ...] = ()
    optional: bool = False
    snippet: Optional[Snippet] = None

    @property
    def manual(self) -> bool:
        # nothing to execute, the operator does the work by hand
        return not self.commands


@dataclass
class Runbook:
    """
    An ordered list of steps. Steps are numbered 1..N in declaration order.
    """
    name: str
    title: str
    steps: List[Step]
    summary: str = ""
    inputs: List[str] = field(default_factory=list)
    env: Dict[str, str] = field(default_factory=dict)
    recovery: str = ""
    recovery_commands: List[str] = field(default_factory=list)

    def ids(self) -> List[str]:
        return [s.id for s in self.steps]

    def get(self, step_id: str) -> Step:
        for s in self.steps:
            if s.id == step_id:
                return s
        raise KeyError(f"Unknown step {step_id!r}. Known steps: {self.ids()}")

    def number_of(self, step_id: str) -> int:
        return self.ids().index(self.get(step_id).id) + 1

    def __len__(self) -> int:
        return len(self.steps)
