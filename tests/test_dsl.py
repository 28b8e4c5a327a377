from __future__ import annotations

import dataclasses

import pytest

from uvmigrate.dsl import build, command, file, runbook, snippet, step, tool
from uvmigrate.model import Check


def test_step_collects_commands_in_order():
    s = step("sync", "Sync", "uv lock", "uv sync", fallback=["uv pip sync requirements.txt"])
    assert s.commands == ("uv lock", "uv sync")
    assert s.fallback == ("uv pip sync requirements.txt",)
    assert not s.manual


def test_step_without_commands_is_manual():
    assert step("docker", "Update Dockerfile", description="by hand").manual


def test_step_is_frozen():
    s = step("a", "A", "true")
    with pytest.raises(dataclasses.FrozenInstanceError):
        s.title = "B"


def test_step_needs_an_id():
    with pytest.raises(ValueError):
        step("  ", "Blank")


def test_check_helpers():
    assert tool("uv") == Check("tool", "uv")
    assert file("uv.lock") == Check("file", "uv.lock")
    assert command("uv --version").kind == "command"
    with pytest.raises(ValueError, match="Unknown check kind"):
        Check("registry", "pypi")


def test_snippet_ends_with_single_newline():
    sn = snippet("Dockerfile", "\nFROM scratch\n\n", language="dockerfile")
    assert sn.content == "FROM scratch\n"
    assert sn.language == "dockerfile"


def test_runbook_validation():
    with pytest.raises(ValueError, match="at least one step"):
        runbook("empty")
    with pytest.raises(ValueError, match="Duplicate step ids"):
        runbook("dupes", step("a", "A", "true"), step("a", "Again", "true"))


def test_runbook_numbering_and_lookup():
    rb = runbook("rb", step("a", "A", "true"), step("b", "B", "true"), env={"RETRIES": 3})
    assert rb.title == "rb"
    assert len(rb) == 2
    assert rb.number_of("b") == 2
    assert rb.get("a").title == "A"
    assert rb.env == {"RETRIES": "3"}
    with pytest.raises(KeyError):
        rb.get("zzz")


def test_builder():
    rb = (
        build("migrate")
        .describe("Migrate", "pip to uv")
        .with_inputs("requirements.txt")
        .with_env(UV_PYTHON="3.12")
        .define_step("lock", "Lock", "uv lock", produces=["uv.lock"])
        .add_step(step("sync", "Sync", "uv sync", consumes=["uv.lock"]))
        .on_failure("Re-lock:", "uv lock", "uv sync")
        .build()
    )
    assert rb.title == "Migrate"
    assert rb.summary == "pip to uv"
    assert rb.ids() == ["lock", "sync"]
    assert rb.inputs == ["requirements.txt"]
    assert rb.env == {"UV_PYTHON": "3.12"}
    assert rb.recovery_commands == ["uv lock", "uv sync"]


def test_builder_without_steps_fails():
    with pytest.raises(ValueError):
        build("nothing").build()


def test_step_sequences_are_copied_into_tuples():
    produces = ["uv.lock"]
    s = step("lock", "Lock", "uv lock", produces=produces, requires=[tool("uv")])
    produces.append("extra")

    assert s.produces == ("uv.lock",)
    assert s.requires == (Check("tool", "uv"),)
    assert not hasattr(s.commands, "append")
