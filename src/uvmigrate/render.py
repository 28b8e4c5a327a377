"""Render a runbook back into the markdown document an operator reads."""

from __future__ import annotations

from typing import List

from .model import Runbook, Step


def _fence(lines: List[str], language: str = "") -> List[str]:
    return [f"```{language}", *lines, "```"]


def render_step(number: int, step: Step) -> str:
    out: List[str] = [f"## {number}. {step.title}", ""]

    if step.optional:
        out += ["*Optional.*", ""]

    if step.description:
        out += [step.description, ""]

    if step.requires:
        out.append("Before you start, make sure:")
        out += [f"- {c.describe()}" for c in step.requires]
        out.append("")

    if step.skip_if is not None:
        out += [f"Skip this step if {step.skip_if.describe()}.", ""]

    if step.commands:
        out += _fence(list(step.commands), "bash")
        out.append("")

    if step.fallback:
        out += ["If this fails, use instead:", ""]
        out += _fence(list(step.fallback), "bash")
        out.append("")

    if step.snippet is not None:
        out += [f"`{step.snippet.path}`:", ""]
        out += _fence(step.snippet.content.rstrip("\n").splitlines(), step.snippet.language)
        out.append("")

    if step.check is not None:
        out += [f"Afterwards, {step.check.describe()}.", ""]

    return "\n".join(out)


def render_markdown(runbook: Runbook) -> str:
    parts: List[str] = [f"# {runbook.title}", ""]
    if runbook.summary:
        parts += [runbook.summary, ""]
    if runbook.inputs:
        parts.append("You will need: " + ", ".join(f"`{i}`" for i in runbook.inputs) + ".")
        parts.append("")

    for number, step in enumerate(runbook.steps, start=1):
        parts.append(render_step(number, step))

    if runbook.recovery or runbook.recovery_commands:
        parts += ["## Troubleshooting", ""]
        if runbook.recovery:
            parts += [runbook.recovery, ""]
        if runbook.recovery_commands:
            parts += _fence(list(runbook.recovery_commands), "bash")
            parts.append("")

    return "\n".join(parts).rstrip("\n") + "\n"
