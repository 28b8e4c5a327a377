# runbooks/uv_migration.py
# pip + requirements.txt  --->  uv (pyproject.toml + uv.lock)
from __future__ import annotations

from uvmigrate.dsl import command, file, runbook as make_runbook, snippet, step, tool
from uvmigrate.model import Runbook


DOCKERFILE = """
FROM python:3.12-slim

# uv ships as a static binary; copy it from the official image
COPY --from=ghcr.io/astral-sh/uv:latest /uv /uvx /bin/

WORKDIR /app

# install dependencies first so this layer is cached between code changes
COPY pyproject.toml uv.lock ./
RUN uv sync --frozen --no-install-project

COPY . .
RUN uv sync --frozen

CMD ["uv", "run", "python", "-m", "app"]
"""


def runbook() -> Runbook:
    return make_runbook(
        "uv-migration",
        step(
            "install-uv",
            "Install uv",
            "curl -LsSf https://astral.sh/uv/install.sh | sh",
            description="Install the uv binary. The installer puts it in ~/.local/bin; "
                        "open a new shell afterwards so it is on PATH.",
            fallback=["pip install uv"],
            requires=[tool("curl")],
            skip_if=tool("uv"),
        ),
        step(
            "verify-uv",
            "Check that uv works",
            "uv --version",
            requires=[tool("uv")],
        ),
        step(
            "create-venv",
            "Create the virtual environment",
            "uv venv",
            description="Creates .venv in the project root. uv picks it up automatically, "
                        "no need to activate it.",
            requires=[tool("uv")],
            produces=[".venv"],
            check=file(".venv"),
        ),
        step(
            "init-project",
            "Create pyproject.toml",
            "uv init --bare",
            description="uv keeps dependencies in pyproject.toml. "
                        "Projects that already have one keep it.",
            requires=[tool("uv")],
            skip_if=file("pyproject.toml"),
            produces=["pyproject.toml"],
            check=file("pyproject.toml"),
        ),
        step(
            "import-requirements",
            "Import requirements.txt",
            "uv add --requirements requirements.txt",
            description="Adds every requirement to [project.dependencies] and writes uv.lock. "
                        "Older uv releases do not support `uv add --requirements`; "
                        "the fallback installs the same set into the venv instead.",
            fallback=["uv pip install -r requirements.txt"],
            requires=[tool("uv"), file("requirements.txt")],
            consumes=["pyproject.toml", "requirements.txt"],
            produces=["uv.lock"],
        ),
        step(
            "import-dev-requirements",
            "Import development requirements",
            "uv add --dev --requirements requirements-dev.txt",
            description="Only if the project keeps test/lint tools in a separate file.",
            fallback=["uv pip install -r requirements-dev.txt"],
            requires=[tool("uv"), file("requirements-dev.txt")],
            consumes=["pyproject.toml"],
            optional=True,
        ),
        step(
            "lock",
            "Lock dependencies",
            "uv lock",
            description="Resolves the full dependency tree and pins it in uv.lock.",
            requires=[tool("uv")],
            consumes=["pyproject.toml"],
            produces=["uv.lock"],
            check=file("uv.lock"),
        ),
        step(
            "sync",
            "Sync the environment",
            "uv sync",
            description="Makes .venv match uv.lock exactly, removing anything not in the lock.",
            requires=[tool("uv")],
            consumes=["uv.lock"],
        ),
        step(
            "verify-run",
            "Run the project through uv",
            "uv run python --version",
            description="From now on prefix commands with `uv run` (e.g. `uv run pytest`); "
                        "it syncs the environment before running.",
            requires=[tool("uv")],
            consumes=[".venv", "uv.lock"],
        ),
        step(
            "update-dockerfile",
            "Update the container build",
            description="Replace `pip install -r requirements.txt` in the Dockerfile with a "
                        "locked `uv sync`. Adjust the base image and entrypoint to your project.",
            consumes=["pyproject.toml", "uv.lock"],
            produces=["Dockerfile"],
            snippet=snippet("Dockerfile", DOCKERFILE, language="dockerfile"),
        ),
        step(
            "commit",
            "Commit the new files",
            "git add pyproject.toml uv.lock",
            'git commit -m "Migrate dependency management to uv"',
            description="uv.lock belongs in version control; .venv does not.",
            requires=[tool("git"), command("git rev-parse --is-inside-work-tree")],
            consumes=["pyproject.toml", "uv.lock"],
            optional=True,
        ),
        step(
            "export-requirements",
            "Keep requirements.txt for legacy consumers",
            "uv export --format requirements-txt --no-hashes --output-file requirements.txt",
            description="Regenerate requirements.txt from the lock for tools that still read it. "
                        "Skip this and delete requirements.txt once nothing needs it.",
            requires=[tool("uv")],
            consumes=["uv.lock"],
            produces=["requirements.txt"],
            optional=True,
        ),
        title="Migrating from pip to uv",
        summary="Move a project managed with pip and requirements.txt to uv, "
                "with dependencies declared in pyproject.toml and pinned in uv.lock.",
        inputs=["requirements.txt"],
        recovery="If something breaks after changing dependencies, re-resolve and re-sync:",
        recovery_commands=["uv lock", "uv sync"],
    )


RUNBOOK = runbook()
