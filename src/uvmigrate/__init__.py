from .dsl import step, runbook, build, tool, file, command, snippet, RunbookBuilder
from .runner import run_runbook, load_runbook
from .model import Runbook, Step, Check, Snippet

__all__ = [
    "step", "runbook", "build", "tool", "file", "command", "snippet", "RunbookBuilder",
    "run_runbook", "load_runbook", "Runbook", "Step", "Check", "Snippet",
]
