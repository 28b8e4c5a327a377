# src/uvmigrate/dsl.py
from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from .model import Check, Runbook, Snippet, Step


# ---------------------------------------------------------------------
# Check helpers
# ---------------------------------------------------------------------

def tool(name: str) -> Check:
    """Precondition: executable is on PATH."""
    return Check(kind="tool", target=name)


def file(path: str) -> Check:
    """Precondition: path exists relative to the project dir."""
    return Check(kind="file", target=path)


def command(cmd: str) -> Check:
    """Precondition: shell command exits 0."""
    return Check(kind="command", target=cmd)


def snippet(path: str, content: str, *, language: str = "") -> Snippet:
    return Snippet(path=path, content=content.strip("\n") + "\n", language=language)


# ---------------------------------------------------------------------
# Functional Step helper
# ---------------------------------------------------------------------

def step(
    id: str,
    title: str,
    *commands: str,  # allow: step("x", "Title", "cmd1", "cmd2")
    description: str = "",
    fallback: Optional[Iterable[str]] = None,
    check: Optional[Check] = None,
    requires: Optional[Iterable[Check]] = None,
    skip_if: Optional[Check] = None,
    produces: Optional[Iterable[str]] = None,
    consumes: Optional[Iterable[str]] = None,
    optional: bool = False,
    snippet: Optional[Snippet] = None,
) -> Step:
    if not id or not id.strip():
        raise ValueError("step() needs a non-empty id")

    return Step(
        id=id.strip(),
        title=title,
        description=description.strip(),
        commands=tuple(commands),
        fallback=tuple(fallback or ()),
        check=check,
        requires=tuple(requires or ()),
        skip_if=skip_if,
        produces=tuple(produces or ()),
        consumes=tuple(consumes or ()),
        optional=optional,
        snippet=snippet,
    )


def _validate_steps(name: str, steps: List[Step]) -> None:
    if not steps:
        raise ValueError(f"runbook({name!r}) must have at least one step")

    ids = [s.id for s in steps]
    if len(set(ids)) != len(ids):
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        raise ValueError(f"Duplicate step ids found: {dupes}")


# ---------------------------------------------------------------------
# Functional Runbook helper
# ---------------------------------------------------------------------

def runbook(
    name: str,
    *steps: Step,
    title: str | None = None,
    summary: str = "",
    inputs: Optional[List[str]] = None,
    env: Optional[Dict[str, str]] = None,
    recovery: str = "",
    recovery_commands: Optional[List[str]] = None,
) -> Runbook:
    steps_final = list(steps)
    _validate_steps(name, steps_final)

    return Runbook(
        name=name,
        title=title or name,
        steps=steps_final,
        summary=summary.strip(),
        inputs=inputs or [],
        # force values to str, they end up in a subprocess env
        env={k: str(v) for k, v in (env or {}).items()},
        recovery=recovery.strip(),
        recovery_commands=recovery_commands or [],
    )


# ---------------------------------------------------------------------
# Builder API
# ---------------------------------------------------------------------

class RunbookBuilder:
    def __init__(self, name: str):
        self.name = name
        self._title: str | None = None
        self._summary = ""
        self._steps: list[Step] = []
        self._inputs: list[str] = []
        self._env: dict[str, str] = {}
        self._recovery = ""
        self._recovery_commands: list[str] = []

    def describe(self, title: str, summary: str = ""):
        self._title = title
        self._summary = summary
        return self

    def add_step(self, s: Step):
        self._steps.append(s)
        return self

    def define_step(self, id: str, title: str, *commands: str, **kwargs):
        return self.add_step(step(id, title, *commands, **kwargs))

    def with_inputs(self, *artifacts: str):
        self._inputs.extend(artifacts)
        return self

    def with_env(self, **env):
        self._env.update({k: str(v) for k, v in env.items()})
        return self

    def on_failure(self, text: str, *commands: str):
        self._recovery = text
        self._recovery_commands = list(commands)
        return self

    def build(self) -> Runbook:
        return runbook(
            self.name,
            *self._steps,
            title=self._title,
            summary=self._summary,
            inputs=self._inputs,
            env=self._env,
            recovery=self._recovery,
            recovery_commands=self._recovery_commands,
        )


def build(name: str) -> RunbookBuilder:
    """Convenience: build('migrate').define_step(...).build()"""
    return RunbookBuilder(name)
