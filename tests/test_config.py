from __future__ import annotations

import pytest

from uvmigrate.config import DEFAULT_OUTPUT_TAIL, DEFAULT_STATE_DIR, Settings


def test_defaults():
    s = Settings.from_env({})
    assert s.project_dir == "."
    assert s.state_dir == DEFAULT_STATE_DIR
    assert s.output_tail == DEFAULT_OUTPUT_TAIL
    assert s.assume_yes is False


def test_from_env():
    s = Settings.from_env({
        "UVMIGRATE_PROJECT_DIR": "/srv/app",
        "UVMIGRATE_STATE_DIR": ".state",
        "UVMIGRATE_OUTPUT_TAIL": "100",
        "UVMIGRATE_ASSUME_YES": "Yes",
    })
    assert s == Settings(project_dir="/srv/app", state_dir=".state", output_tail=100, assume_yes=True)


def test_bad_tail():
    with pytest.raises(ValueError, match="UVMIGRATE_OUTPUT_TAIL"):
        Settings.from_env({"UVMIGRATE_OUTPUT_TAIL": "lots"})


def test_negative_tail_rejected():
    with pytest.raises(ValueError, match=">= 0"):
        Settings.from_env({"UVMIGRATE_OUTPUT_TAIL": "-5"})
    assert Settings.from_env({"UVMIGRATE_OUTPUT_TAIL": "0"}).output_tail == 0
