# cli.py
from __future__ import annotations

import sys
from pathlib import Path

import click

from uvmigrate.config import Settings
from uvmigrate.model import Runbook, Step
from uvmigrate.progress import ProgressStore
from uvmigrate.render import render_markdown, render_step
from uvmigrate.review import has_errors, review
from uvmigrate.runner import load_runbook, run_runbook, write_snippet
from uvmigrate.ui.console import Console, set_console, get_console


DEFAULT_RUNBOOK_FILE = "uvmigrate_runbook.py"


def find_runbook_files() -> list[Path]:
    """
    Find all runbook files in the current directory.

    Returns:
        List of Path objects for runbook files
    """
    runbook_files = []
    current_dir = Path(".")

    default_runbook = current_dir / DEFAULT_RUNBOOK_FILE
    if default_runbook.exists():
        runbook_files.append(default_runbook)

    for path in current_dir.glob("*_runbook.py"):
        if path != default_runbook:
            runbook_files.append(path)

    return sorted(runbook_files)


def discover_runbook(runbook_arg: str | None) -> Runbook:
    """
    Resolve the runbook from --runbook, a runbook file in the cwd,
    or the built-in pip -> uv migration.

    Raises:
        SystemExit: If the given file is missing or several runbook files exist
    """
    console = get_console()

    if runbook_arg:
        runbook_path = Path(runbook_arg)
        if not runbook_path.exists() and runbook_path.suffix != ".py":
            runbook_path = Path(str(runbook_path) + ".py")
        if not runbook_path.exists():
            console.print_error(
                "Runbook file not found",
                f"Could not find runbook file: {runbook_arg}",
                suggestion="Specify a different path or omit --runbook to use the built-in migration",
            )
            sys.exit(1)
        return load_runbook(runbook_path)

    runbook_files = find_runbook_files()

    if len(runbook_files) > 1:
        file_list = "\n".join(f"  {f}" for f in runbook_files)
        console.print_error(
            "Multiple runbook files found",
            "Found multiple runbook files. Please specify which one to use:",
            details=[file_list],
            suggestion=f"Specify a runbook explicitly:\n  uvmigrate --runbook {DEFAULT_RUNBOOK_FILE} run",
        )
        sys.exit(1)

    if runbook_files:
        console.print_debug(f"Using runbook file {runbook_files[0]}")
        return load_runbook(runbook_files[0])

    from uvmigrate.runbooks.uv_migration import runbook

    console.print_debug("Using built-in uv migration runbook")
    return runbook()


def _parse_env(ctx, param, values) -> dict[str, str]:
    env = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {item!r}")
        env[key] = value
    return env


def _get_step(rb: Runbook, step_id: str) -> Step:
    try:
        return rb.get(step_id)
    except KeyError as e:
        raise click.BadParameter(str(e.args[0]), param_hint="STEP")


def prompt_step(step: Step) -> str:
    """Ask the operator what to do with the next step."""
    return click.prompt(
        "  Run this step?",
        type=click.Choice(["run", "skip", "quit"]),
        default="skip" if step.optional else "run",
    )


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and command output)",
)
@click.option(
    "--runbook",
    "runbook_file",
    default=None,
    help=f"Runbook file path (defaults to {DEFAULT_RUNBOOK_FILE} if present, else the built-in migration)",
)
@click.pass_context
def cli(ctx, debug, runbook_file):
    """uvmigrate — step-by-step migration from pip/requirements.txt to uv."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["runbook_file"] = runbook_file
    try:
        ctx.obj["settings"] = Settings.from_env()
    except ValueError as e:
        raise click.UsageError(str(e))


def _load(ctx) -> Runbook:
    try:
        return discover_runbook(ctx.obj.get("runbook_file"))
    except Exception as e:
        get_console().print_error("Failed to load runbook", f"{type(e).__name__}: {e}")
        if ctx.obj.get("debug", False):
            import traceback
            traceback.print_exc()
        sys.exit(1)


@cli.command("list")
@click.pass_context
def list_steps(ctx):
    """List the runbook's steps in order."""
    rb = _load(ctx)
    console = get_console()
    console.print_header(rb.title)
    for number, s in enumerate(rb.steps, start=1):
        flag = " (optional)" if s.optional else ""
        console.print_info(f"{number:>3}. {s.id:<28} {s.title}{flag}")


@cli.command()
@click.argument("step_id", metavar="STEP")
@click.pass_context
def show(ctx, step_id):
    """Show one step in full."""
    rb = _load(ctx)
    s = _get_step(rb, step_id)
    click.echo(render_step(rb.number_of(s.id), s))


@cli.command()
@click.option("--project-dir", default=None, help="Project to migrate (defaults to UVMIGRATE_PROJECT_DIR or .)")
@click.option("--yes", "-y", is_flag=True, default=False, help="Run every step without asking")
@click.option("--dry-run", is_flag=True, default=False, help="Print the steps without executing anything")
@click.option("--from", "start_at", default=None, metavar="STEP", help="Start at this step")
@click.option("--only", multiple=True, metavar="STEP", help="Run only these steps (repeatable)")
@click.option("--skip", multiple=True, metavar="STEP", help="Skip these steps (repeatable)")
@click.option("--resume/--no-resume", default=False, help="Skip steps a previous run completed")
@click.option("--write-snippets", is_flag=True, default=False, help="Write example files (never overwrites)")
@click.option("--env", "env", multiple=True, callback=_parse_env, metavar="KEY=VALUE", help="Extra environment for commands")
@click.pass_context
def run(ctx, project_dir, yes, dry_run, start_at, only, skip, resume, write_snippets, env):
    """Walk through the runbook, one step at a time."""
    console = get_console()
    settings: Settings = ctx.obj["settings"]
    rb = _load(ctx)

    project = Path(project_dir or settings.project_dir)
    assume_yes = yes or settings.assume_yes

    try:
        console.print_run_started(
            runbook=rb.title,
            project_dir=str(project.resolve()),
            step_count=len(rb),
            dry_run=dry_run,
        )

        results = run_runbook(
            rb,
            project_dir=project,
            state_dir=project / settings.state_dir,
            dry_run=dry_run,
            only=list(only) or None,
            start_at=start_at,
            skip=list(skip),
            resume=resume,
            env_overrides=env,
            confirm=None if assume_yes else prompt_step,
            write_snippets=write_snippets,
            output_tail=settings.output_tail,
        )

        console.print_results(results)

        if any(v == "failed" for v in results.values()):
            console.print_info("\nFix the problem, then continue with: uvmigrate run --resume")
            sys.exit(1)

    except (KeyboardInterrupt, click.exceptions.Abort):
        # click.prompt turns Ctrl-C into Abort
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except (ValueError, FileNotFoundError) as e:
        console.print_error("Cannot run runbook", str(e))
        sys.exit(1)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)


@cli.command()
@click.pass_context
def check(ctx):
    """Review the runbook for ordering mistakes."""
    rb = _load(ctx)
    findings = review(rb)
    get_console().print_findings(findings)
    if has_errors(findings):
        sys.exit(1)


@cli.command()
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Write to a file instead of stdout")
@click.pass_context
def export(ctx, output):
    """Render the runbook as a markdown document."""
    rb = _load(ctx)
    text = render_markdown(rb)
    if output:
        Path(output).write_text(text, encoding="utf-8")
        get_console().print_info(f"Wrote {output}")
    else:
        click.echo(text, nl=False)


@cli.command()
@click.argument("step_id", metavar="STEP")
@click.option("--write", is_flag=True, default=False, help="Write the file into the project (never overwrites)")
@click.option("--project-dir", default=None, help="Project directory (defaults to UVMIGRATE_PROJECT_DIR or .)")
@click.pass_context
def snippet(ctx, step_id, write, project_dir):
    """Print (or write) the example file attached to a step."""
    console = get_console()
    rb = _load(ctx)
    s = _get_step(rb, step_id)
    if s.snippet is None:
        console.print_error("No snippet", f"Step '{s.id}' has no example file")
        sys.exit(1)

    if not write:
        click.echo(s.snippet.content, nl=False)
        return

    project = Path(project_dir or ctx.obj["settings"].project_dir)
    written = write_snippet(s, project)
    if written is None:
        console.print_error(
            "File exists",
            f"{project / s.snippet.path} already exists, not overwritten",
            suggestion=f"Compare by hand:\n  uvmigrate snippet {s.id}",
        )
        sys.exit(1)
    console.print_info(f"Wrote {written}")


@cli.command()
@click.option("--project-dir", default=None, help="Project directory (defaults to UVMIGRATE_PROJECT_DIR or .)")
@click.pass_context
def reset(ctx, project_dir):
    """Forget which steps previous runs completed."""
    settings: Settings = ctx.obj["settings"]
    project = Path(project_dir or settings.project_dir)
    store = ProgressStore(project / settings.state_dir)
    if store.reset():
        get_console().print_info("Progress cleared")
    else:
        get_console().print_info("No progress recorded")


if __name__ == "__main__":
    cli()
