from __future__ import annotations

import textwrap

import pytest

from uvmigrate.ui.console import Console, set_console


@pytest.fixture(autouse=True)
def quiet_console():
    set_console(Console(debug=False))
    yield


@pytest.fixture
def write_runbook(tmp_path):
    """Write a runbook python file and return its path."""
    def _write(body: str, name: str = "demo_runbook.py"):
        path = tmp_path / name
        path.write_text(textwrap.dedent(body), encoding="utf-8")
        return path
    return _write
