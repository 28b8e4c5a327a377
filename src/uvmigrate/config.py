from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional


DEFAULT_STATE_DIR = ".uvmigrate"
DEFAULT_OUTPUT_TAIL = 4000

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    project_dir: str = "."
    state_dir: str = DEFAULT_STATE_DIR
    output_tail: int = DEFAULT_OUTPUT_TAIL
    assume_yes: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Settings:
        env = os.environ if environ is None else environ
        tail = env.get("UVMIGRATE_OUTPUT_TAIL", str(DEFAULT_OUTPUT_TAIL))
        try:
            output_tail = int(tail)
        except ValueError:
            raise ValueError(f"UVMIGRATE_OUTPUT_TAIL must be an integer, got {tail!r}")
        if output_tail < 0:
            raise ValueError(f"UVMIGRATE_OUTPUT_TAIL must be >= 0, got {output_tail}")
        return cls(
            project_dir=env.get("UVMIGRATE_PROJECT_DIR", "."),
            state_dir=env.get("UVMIGRATE_STATE_DIR", DEFAULT_STATE_DIR),
            output_tail=output_tail,
            assume_yes=env.get("UVMIGRATE_ASSUME_YES", "").strip().lower() in _TRUTHY,
        )
