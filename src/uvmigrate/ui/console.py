"""Console output formatting utilities for uvmigrate."""

from __future__ import annotations

import sys
from typing import Iterable, Optional


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug

    def print_header(self, title: str) -> None:
        """Print a section header."""
        print(f"\n{title}")
        print("-" * len(title))

    def print_run_started(
        self,
        runbook: str,
        project_dir: str,
        step_count: int,
        dry_run: bool = False,
    ) -> None:
        """Print run start information."""
        print("\nRUN STARTED" + (" (dry run)" if dry_run else ""))
        print(f"Runbook: {runbook}")
        print(f"Project: {project_dir}")
        print(f"Steps: {step_count}")
        print()

    def print_step_start(self, number: int, total: int, step_id: str, title: str) -> None:
        """Print step start message."""
        print(f"\nSTEP {number}/{total}: {title} [{step_id}]")

    def print_description(self, text: str) -> None:
        for line in text.splitlines():
            print(f"  {line}")

    def print_command(self, cmd: str) -> None:
        print(f"  $ {cmd}")

    def print_fallback(self, cmd: str, exit_code: int) -> None:
        """Print switch to the fallback path."""
        print(f"  Command failed (exit={exit_code}): {cmd}")
        print("  Taking fallback path")

    def print_status(self, status: str) -> None:
        print(f"STATUS: {status}")

    def print_step_skipped(self, step_id: str, reason: str) -> None:
        """Print step skipped message."""
        print(f"STATUS: skipped ({reason})")

    def print_snippet(self, path: str, content: str) -> None:
        print(f"  --- {path} ---")
        for line in content.rstrip("\n").splitlines():
            print(f"  {line}")
        print("  ---")

    def print_output(self, text: str) -> None:
        """Print captured command output (only if debug mode enabled)."""
        if self.debug and text.strip():
            for line in text.rstrip("\n").splitlines():
                print(f"    | {line}")

    def print_recovery(self, text: str, commands: Iterable[str]) -> None:
        """Print the runbook's recovery guidance after a failure."""
        commands = list(commands)
        if not text and not commands:
            return
        print("\nRECOVERY", file=sys.stderr)
        if text:
            print(text, file=sys.stderr)
        for cmd in commands:
            print(f"  $ {cmd}", file=sys.stderr)

    def print_results(self, results: dict[str, str]) -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        for step_id, status in results.items():
            status_display = status.upper() if status != "ok" else "SUCCESS"
            print(f"  {step_id}: {status_display}")

    def print_findings(self, findings) -> None:
        """Print review findings, errors first."""
        if not findings:
            print("No problems found")
            return
        for f in sorted(findings, key=lambda f: f.level != "error"):
            where = f" [{f.step}]" if f.step else ""
            print(f"{f.level.upper()}{where}: {f.message}")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
