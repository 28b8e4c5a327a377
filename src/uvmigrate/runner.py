# runner.py
from __future__ import annotations

import os
import runpy
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from string import Template
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from .config import DEFAULT_OUTPUT_TAIL
from .model import Check, Runbook, Step
from .progress import ProgressStore
from .ui.console import get_console


@dataclass
class RunbookError(Exception):
    """
    Structured runbook error with enough context for:
      - clean CLI output
      - pointing the operator at the step that stopped the run
    """
    kind: str
    step: str | None
    message: str
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        lines = [f"{self.kind}: {self.message}"]
        if self.step:
            lines.append(f"step={self.step}")
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)


class PreconditionFailed(RunbookError):
    pass


class PostconditionFailed(RunbookError):
    pass


@dataclass
class StepFailure(Exception):
    step: str
    cmd: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    def __str__(self) -> str:
        return f"step '{self.step}' failed (exit={self.exit_code}): {self.cmd}"


TOOL_HINTS = {
    "uv": "Install uv: curl -LsSf https://astral.sh/uv/install.sh | sh (or pip install uv), then open a new shell.",
    "git": "Install Git or fix PATH.",
    "docker": "Install Docker and ensure the daemon is running.",
    "curl": "Install curl, or use the fallback: pip install uv.",
    "pip": "Install pip for your Python (python -m ensurepip) or fix PATH.",
    "python3": "Install Python 3 or fix PATH (python3).",
}

# Operator decision per step: "run" | "skip" | "quit"
Confirm = Callable[[Step], str]


def hint_for(exc: Exception) -> Optional[str]:
    """Best-effort install hint for a failure."""
    if isinstance(exc, StepFailure):
        # 127: command not found
        if exc.exit_code == 127:
            tool = exc.cmd.split()[0] if exc.cmd.split() else ""
            return TOOL_HINTS.get(tool, f"Install {tool} or fix PATH.")
        return None
    if isinstance(exc, RunbookError):
        return exc.details.get("hint")
    return None


# ----------------------------------------------------------------------
# Runbook loading (local file)
# ----------------------------------------------------------------------

def load_runbook(path: str | Path) -> Runbook:
    """
    Load a runbook from a python file path.

    The file must define either:
      - runbook() -> Runbook
      - RUNBOOK = Runbook(...)
    """
    rb_path = Path(path).expanduser().resolve()
    if not rb_path.exists():
        raise FileNotFoundError(f"Runbook file not found: {rb_path}")
    if rb_path.suffix != ".py":
        raise ValueError(f"Runbook must be a .py file, got: {rb_path.name}")

    module_name = f"uvmigrate_runbook_{rb_path.stem}"
    globals_dict = runpy.run_path(str(rb_path), run_name=module_name)

    rb = None
    if "RUNBOOK" in globals_dict:
        rb = globals_dict["RUNBOOK"]
    elif "runbook" in globals_dict and callable(globals_dict["runbook"]):
        try:
            rb = globals_dict["runbook"]()
        except TypeError as e:
            if "required positional argument" in str(e):
                raise TypeError(
                    "Your runbook() is being called without arguments (name collision with the helper). "
                    "Import the helper under another name, e.g. "
                    "`from uvmigrate.dsl import runbook as make_runbook`, "
                    "or define RUNBOOK = make_runbook(...)"
                ) from e
            raise

    if not isinstance(rb, Runbook):
        raise TypeError(
            "Runbook file must return/define a Runbook. "
            "Define runbook() -> Runbook or RUNBOOK = Runbook(...)."
        )

    return rb


# ----------------------------------------------------------------------
# Environment probes
# ----------------------------------------------------------------------

def build_env(runbook: Runbook, overrides: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    env = os.environ.copy()
    env.update(runbook.env)
    env.update(overrides or {})
    return env


def evaluate_check(check: Check, project_dir: Path, env: Mapping[str, str]) -> bool:
    target = Template(check.target).safe_substitute(env)

    if check.kind == "tool":
        return shutil.which(target, path=env.get("PATH")) is not None

    if check.kind == "file":
        return (project_dir / Path(target).expanduser()).exists()

    proc = subprocess.run(
        target,
        shell=True,
        cwd=str(project_dir),
        env=dict(env),
        text=True,
        capture_output=True,
    )
    return proc.returncode == 0


def _unmet(checks: Iterable[Check], project_dir: Path, env: Mapping[str, str]) -> List[Check]:
    return [c for c in checks if not evaluate_check(c, project_dir, env)]


# ----------------------------------------------------------------------
# Execution primitives
# ----------------------------------------------------------------------

def _tail(text: str, n: int) -> str:
    # text[-0:] is the whole string
    return text[-n:] if n > 0 else ""


def _run_command(step: Step, cmd: str, project_dir: Path, env: Mapping[str, str], tail: int) -> None:
    console = get_console()
    console.print_command(cmd)

    proc = subprocess.run(
        cmd,
        shell=True,
        cwd=str(project_dir),
        env=dict(env),
        text=True,
        capture_output=True,   # so you can show output on failure
    )
    console.print_output(proc.stdout)

    if proc.returncode != 0:
        raise StepFailure(
            step=step.id,
            cmd=cmd,
            exit_code=proc.returncode,
            stdout=_tail(proc.stdout, tail),
            stderr=_tail(proc.stderr, tail),
        )


def write_snippet(step: Step, project_dir: Path) -> Optional[Path]:
    """
    Write the step's snippet into the project.
    Never overwrites: returns None when the file already exists.
    """
    if step.snippet is None:
        raise ValueError(f"Step '{step.id}' has no snippet")
    target = project_dir / step.snippet.path
    if target.exists():
        return None
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(step.snippet.content, encoding="utf-8")
    return target


def run_step(
    step: Step,
    project_dir: Path,
    env: Mapping[str, str],
    *,
    tail: int = DEFAULT_OUTPUT_TAIL,
) -> str:
    """
    Run one step's commands. Returns the status:
      - "ok"
      - "ok(fallback)"  (a primary command failed, fallback commands succeeded)
      - "manual"        (no commands, the operator does it by hand)
    Raises on failures.
    """
    status = "ok"

    if step.manual:
        status = "manual"
    else:
        try:
            for cmd in step.commands:
                _run_command(step, cmd, project_dir, env, tail)
        except StepFailure as e:
            if not step.fallback:
                raise
            get_console().print_fallback(e.cmd, e.exit_code)
            for cmd in step.fallback:
                _run_command(step, cmd, project_dir, env, tail)
            status = "ok(fallback)"

    if step.check is not None and not evaluate_check(step.check, project_dir, env):
        raise PostconditionFailed(
            kind="postcondition_failed",
            step=step.id,
            message=f"Expected {step.check.describe()} after this step",
            details={},
        )

    return status


# ----------------------------------------------------------------------
# Planning (linear traversal)
# ----------------------------------------------------------------------

def plan_steps(
    runbook: Runbook,
    *,
    only: Optional[Iterable[str]] = None,
    start_at: Optional[str] = None,
    skip: Iterable[str] = (),
) -> List[Step]:
    """
    Select the steps to visit, always in runbook order.
    Unknown step ids raise ValueError.
    """
    known = set(runbook.ids())
    requested = list(only or []) + list(skip) + ([start_at] if start_at else [])
    unknown = sorted({s for s in requested if s not in known})
    if unknown:
        raise ValueError(f"Unknown step ids: {unknown}. Known steps: {runbook.ids()}")

    steps = list(runbook.steps)
    if start_at:
        steps = steps[runbook.number_of(start_at) - 1:]
    if only:
        only_set = set(only)
        steps = [s for s in steps if s.id in only_set]
    return steps


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def run_runbook(
    runbook: Runbook,
    *,
    project_dir: str | Path = ".",
    state_dir: str | Path | None = None,
    dry_run: bool = False,
    only: Optional[Iterable[str]] = None,
    start_at: Optional[str] = None,
    skip: Iterable[str] = (),
    resume: bool = False,
    env_overrides: Optional[Mapping[str, str]] = None,
    confirm: Optional[Confirm] = None,
    write_snippets: bool = False,
    output_tail: int = DEFAULT_OUTPUT_TAIL,
) -> Dict[str, str]:
    """
    Walk the runbook in order. Returns {step_id: status} for every step
    visited. The first failure stops the run; later steps are not visited.

    confirm=None runs every step without asking.
    """
    console = get_console()
    project = Path(project_dir).resolve()
    if not project.is_dir():
        raise FileNotFoundError(f"Project directory not found: {project}")

    skip_set = set(skip)
    steps = plan_steps(runbook, only=only, start_at=start_at, skip=skip_set)
    env = build_env(runbook, env_overrides)

    store = ProgressStore(state_dir) if state_dir is not None else None
    done = set(store.completed(runbook.name)) if (store and resume) else set()

    results: Dict[str, str] = {}
    total = len(runbook)

    def record(step_id: str, status: str) -> None:
        results[step_id] = status
        if store is not None and not dry_run:
            store.mark(runbook.name, step_id, status)

    for step in steps:
        console.print_step_start(runbook.number_of(step.id), total, step.id, step.title)

        if step.id in done:
            console.print_step_skipped(step.id, "done")
            results[step.id] = "skipped(done)"
            continue

        if step.id in skip_set:
            console.print_step_skipped(step.id, "requested")
            record(step.id, "skipped")
            continue

        if step.description:
            console.print_description(step.description)

        if dry_run:
            for c in step.requires:
                console.print_info(f"  requires: {c.describe()}")
            for cmd in step.commands:
                console.print_command(cmd)
            for cmd in step.fallback:
                console.print_info(f"  fallback: {cmd}")
            if step.snippet is not None:
                console.print_snippet(step.snippet.path, step.snippet.content)
            console.print_status("planned")
            results[step.id] = "planned"
            continue

        try:
            if step.skip_if is not None and evaluate_check(step.skip_if, project, env):
                console.print_step_skipped(step.id, f"{step.skip_if.describe()}")
                record(step.id, "skipped(satisfied)")
                continue

            missing = _unmet(step.requires, project, env)
            if missing:
                reasons = ", ".join(c.describe() for c in missing)
                if step.optional:
                    console.print_step_skipped(step.id, f"precondition not met: {reasons}")
                    record(step.id, "skipped(precondition)")
                    continue
                first_tool = next((c.target for c in missing if c.kind == "tool"), None)
                details = {"missing": reasons}
                if first_tool:
                    details["hint"] = TOOL_HINTS.get(first_tool, f"Install {first_tool} or fix PATH.")
                raise PreconditionFailed(
                    kind="precondition_failed",
                    step=step.id,
                    message=f"Precondition not met: {reasons}",
                    details=details,
                )

            decision = "run" if confirm is None else confirm(step)
            if decision == "quit":
                console.print_info("Stopped by operator")
                results[step.id] = "stopped"
                break
            if decision == "skip":
                console.print_step_skipped(step.id, "operator")
                record(step.id, "skipped")
                continue

            if step.snippet is not None:
                console.print_snippet(step.snippet.path, step.snippet.content)
                if write_snippets:
                    written = write_snippet(step, project)
                    if written is None:
                        console.print_info(f"  {step.snippet.path} already exists, not overwritten")
                    else:
                        console.print_info(f"  wrote {written}")

            status = run_step(step, project, env, tail=output_tail)
        except (RunbookError, StepFailure) as e:
            record(step.id, "failed")
            details = []
            if isinstance(e, StepFailure):
                # some tools (pip, pytest, test) report on stdout only
                output = e.stderr.strip() or e.stdout.strip()
                if output:
                    details = output.splitlines()[-20:]
            console.print_error(
                "Step failed",
                str(e),
                details=details or None,
                suggestion=hint_for(e),
            )
            console.print_recovery(runbook.recovery, runbook.recovery_commands)
            break

        console.print_status(status)
        record(step.id, status)

    return results
