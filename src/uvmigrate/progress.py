# progress.py
from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Dict, List

# ---------------------------------------------------------------------
# Progress record:
#   <state_dir>/progress.json
#   {
#     "runbook": "uv-migration",
#     "completed": ["install-uv", "verify-uv", ...],   # in completion order
#     "status": {"install-uv": "ok(fallback)", ...},
#     "updated_at": 1700000000
#   }
#
# Only steps that finished count as completed. A record written for another
# runbook is ignored.
# ---------------------------------------------------------------------

PROGRESS_FILE = "progress.json"
DONE_STATUSES = ("ok", "ok(fallback)", "manual", "skipped(satisfied)")


def _json_dumps_stable(obj) -> str:
    return json.dumps(obj, sort_keys=True, indent=2, ensure_ascii=False)


class ProgressStore:
    def __init__(self, state_dir: str | Path):
        self.root = Path(state_dir)
        self.path = self.root / PROGRESS_FILE

    def load(self, runbook_name: str) -> Dict:
        empty = {"runbook": runbook_name, "completed": [], "status": {}, "updated_at": None}
        if not self.path.exists():
            return empty
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Corrupt progress file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Corrupt progress file {self.path}: expected a JSON object")
        if data.get("runbook") != runbook_name:
            return empty
        data.setdefault("completed", [])
        data.setdefault("status", {})
        return data

    def completed(self, runbook_name: str) -> List[str]:
        return list(self.load(runbook_name)["completed"])

    def mark(self, runbook_name: str, step_id: str, status: str) -> None:
        data = self.load(runbook_name)
        data["status"][step_id] = status
        if status in DONE_STATUSES and step_id not in data["completed"]:
            data["completed"].append(step_id)
        data["updated_at"] = int(time.time())

        self.root.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".json.tmp")
        tmp.write_text(_json_dumps_stable(data), encoding="utf-8")
        tmp.replace(self.path)

    def reset(self) -> bool:
        """Remove the record. Returns True if there was one."""
        if self.path.exists():
            self.path.unlink()
            return True
        return False
