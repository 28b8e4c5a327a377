from __future__ import annotations

from uvmigrate.render import render_markdown
from uvmigrate.review import review
from uvmigrate.runbooks.uv_migration import RUNBOOK, runbook
from uvmigrate.runner import run_runbook


def test_twelve_steps_in_order():
    assert RUNBOOK.ids() == [
        "install-uv",
        "verify-uv",
        "create-venv",
        "init-project",
        "import-requirements",
        "import-dev-requirements",
        "lock",
        "sync",
        "verify-run",
        "update-dockerfile",
        "commit",
        "export-requirements",
    ]


def test_passes_review():
    assert review(runbook()) == []


def test_import_has_pip_fallback():
    s = RUNBOOK.get("import-requirements")
    assert s.commands == ("uv add --requirements requirements.txt",)
    assert s.fallback == ("uv pip install -r requirements.txt",)


def test_lock_precedes_sync():
    assert RUNBOOK.number_of("lock") < RUNBOOK.number_of("sync")


def test_recovery_is_lock_then_sync():
    assert RUNBOOK.recovery_commands == ["uv lock", "uv sync"]


def test_dockerfile_snippet():
    sn = RUNBOOK.get("update-dockerfile").snippet
    assert sn.path == "Dockerfile"
    assert "uv sync --frozen" in sn.content


def test_document_lists_every_step():
    md = render_markdown(RUNBOOK)
    positions = [md.index(f"## {n}. {s.title}") for n, s in enumerate(RUNBOOK.steps, start=1)]
    assert positions == sorted(positions)
    assert "uv add --requirements requirements.txt" in md


def test_dry_run_touches_nothing(tmp_path):
    (tmp_path / "requirements.txt").write_text("httpx\n")

    results = run_runbook(RUNBOOK, project_dir=tmp_path, state_dir=tmp_path / ".uvmigrate", dry_run=True)

    assert set(results.values()) == {"planned"}
    assert len(results) == 12
    assert [p.name for p in tmp_path.iterdir()] == ["requirements.txt"]
