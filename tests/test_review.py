from __future__ import annotations

from uvmigrate.dsl import runbook, snippet, step
from uvmigrate.review import has_errors, review


def test_consistent_runbook_has_no_findings():
    rb = runbook(
        "ok",
        step("lock", "Lock", "uv lock", produces=["uv.lock"]),
        step("sync", "Sync", "uv sync", consumes=["uv.lock"]),
        step("commit", "Commit", "git add uv.lock"),
    )
    assert review(rb) == []


def test_lock_file_referenced_before_it_is_created():
    rb = runbook(
        "bad",
        step("commit", "Commit", "git add pyproject.toml uv.lock"),
        step("lock", "Lock", "uv lock", produces=["uv.lock"]),
    )

    findings = review(rb)

    assert has_errors(findings)
    assert [(f.step, f.level) for f in findings] == [("commit", "error")]
    assert "uv.lock" in findings[0].message


def test_consumed_artifact_must_be_produced_earlier():
    rb = runbook(
        "bad",
        step("sync", "Sync", "uv sync", consumes=["uv.lock"]),
        step("lock", "Lock", "uv lock", produces=["uv.lock"]),
    )
    findings = review(rb)
    assert any(f.step == "sync" and "consumes 'uv.lock'" in f.message for f in findings)


def test_inputs_count_as_available():
    rb = runbook(
        "ok",
        step("import", "Import", "uv pip install -r requirements.txt", consumes=["requirements.txt"]),
        step("export", "Export", "uv export -o requirements.txt", produces=["requirements.txt"]),
        inputs=["requirements.txt"],
    )
    assert review(rb) == []


def test_step_may_reference_what_it_creates():
    rb = runbook("ok", step("add", "Add", "uv add httpx && test -f uv.lock", produces=["uv.lock"]))
    assert review(rb) == []


def test_snippets_are_checked_too():
    rb = runbook(
        "bad",
        step("docker", "Dockerfile", snippet=snippet("Dockerfile", "COPY uv.lock ./")),
        step("lock", "Lock", "uv lock", produces=["uv.lock"]),
    )
    assert has_errors(review(rb))


def test_token_match_is_whole_name():
    rb = runbook(
        "ok",
        step("other", "Other", "cat my-uv.lock uv.lockfile"),
        step("lock", "Lock", "uv lock", produces=["uv.lock"]),
    )
    assert review(rb) == []


def test_warnings():
    rb = runbook(
        "warn",
        step("fb", "Fallback only", fallback=["pip install uv"], description="x"),
        step("empty", "Nothing"),
    )
    findings = review(rb)
    assert not has_errors(findings)
    assert {(f.step, f.level) for f in findings} == {("fb", "warning"), ("empty", "warning")}
