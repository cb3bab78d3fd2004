"""Subprocess and output utilities.

Thin wrappers around subprocess for the external tools the pipeline drives
(git, gh, dotnet), plus the progress/error output helpers.
"""

from __future__ import annotations

import os
import subprocess
import sys
from collections.abc import Sequence
from typing import NoReturn


def git(*args: str, check: bool = True) -> str:
    """Run a git command and return stripped stdout.

    Args:
        *args: Arguments to pass to git (e.g., "rev-parse", "HEAD").
        check: If True (default), raise on non-zero exit.
    """
    result = subprocess.run(
        ["git", *args],
        capture_output=True,
        text=True,
        errors="replace",
        check=check,
    )
    return result.stdout.strip()


def gh(*args: str, token: str | None = None, check: bool = True) -> str:
    """Run a gh CLI command and return stripped stdout.

    Args:
        *args: Arguments to pass to gh (e.g., "api", "repos/o/r/tags").
        token: Credential exported as GH_TOKEN for this call only.
        check: If True (default), raise on non-zero exit.
    """
    env = None
    if token:
        env = {**os.environ, "GH_TOKEN": token}
    result = subprocess.run(
        ["gh", *args],
        capture_output=True,
        text=True,
        errors="replace",
        check=check,
        env=env,
    )
    return result.stdout.strip()


def run(*args: str, check: bool = True) -> subprocess.CompletedProcess[bytes]:
    """Run a tool with inherited stdio.

    Output streams directly to the terminal so the tool's own build logs
    stay visible.

    Args:
        *args: Command and arguments (e.g., "dotnet", "build", "App.csproj").
        check: If True (default), raise on non-zero exit.
    """
    print(f"executing command: [{' '.join(args)}]")
    return subprocess.run(args, check=check)


def run_captured(
    *args: str, secrets: Sequence[str] = ()
) -> subprocess.CompletedProcess[str]:
    """Run a tool and capture stdout and stderr together as text.

    Never raises on non-zero exit; callers inspect the output and returncode.
    Values in ``secrets`` are masked in the echoed command line.
    """
    shown = " ".join("***" if a in secrets else a for a in args)
    print(f"executing command: [{shown}]")
    return subprocess.run(
        args,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        errors="replace",
        check=False,
    )


def step(msg: str) -> None:
    """Print a visually distinct step header."""
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def fatal(msg: str, details: str | None = None) -> NoReturn:
    """Print diagnostics and an error annotation, then exit with code 1.

    The ``##[error]`` prefix makes the line show up as an annotation in the
    Actions log.
    """
    if details:
        print(details, file=sys.stderr)
    print(f"##[error]🛑 {msg}", file=sys.stderr)
    sys.exit(1)
