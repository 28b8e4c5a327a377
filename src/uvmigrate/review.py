# review.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Set

from .model import Runbook, Step


@dataclass(frozen=True)
class Finding:
    level: str  # "error" | "warning"
    step: str | None
    message: str


def _mentions(text: str, artifact: str) -> bool:
    # whole-token match: "uv.lock" must not match "uv.lockfile" or "my-uv.lock"
    pattern = r"(?<![\w.\-])" + re.escape(artifact) + r"(?![\w.\-])"
    return re.search(pattern, text) is not None


def _texts(step: Step) -> List[str]:
    out = list(step.commands) + list(step.fallback)
    if step.snippet is not None:
        out.append(step.snippet.content)
    return out


def review(runbook: Runbook) -> List[Finding]:
    """
    Check the runbook reads correctly top to bottom:
      - every consumed artifact exists before the step (input or produced earlier)
      - no command references an artifact before some step creates it
      - fallbacks hang off a primary command
      - every step tells the operator something
    """
    findings: List[Finding] = []

    produced_anywhere: Set[str] = set()
    for s in runbook.steps:
        produced_anywhere.update(s.produces)

    available: Set[str] = set(runbook.inputs)

    for s in runbook.steps:
        for artifact in s.consumes:
            if artifact not in available:
                findings.append(Finding(
                    level="error",
                    step=s.id,
                    message=f"consumes '{artifact}' but no earlier step produces it",
                ))

        # A step may reference what it creates itself (uv add writes uv.lock).
        visible = available | set(s.produces)
        for artifact in sorted(produced_anywhere - visible):
            for text in _texts(s):
                if _mentions(text, artifact):
                    findings.append(Finding(
                        level="error",
                        step=s.id,
                        message=f"references '{artifact}' before any step creates it",
                    ))
                    break

        if s.fallback and not s.commands:
            findings.append(Finding(
                level="warning",
                step=s.id,
                message="has fallback commands but no primary commands",
            ))

        if not s.commands and s.snippet is None and not s.description:
            findings.append(Finding(
                level="warning",
                step=s.id,
                message="has no commands, snippet or description",
            ))

        available.update(s.produces)

    return findings


def has_errors(findings: List[Finding]) -> bool:
    return any(f.level == "error" for f in findings)
