"""Shell and git utilities.

Provides thin wrappers around subprocess calls for running git and the
external build commands, plus output formatting helpers.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from .errors import ExternalCommandError


def git(*args: str, cwd: Path | None = None, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "status", "--short").
        cwd: Directory to run in. Defaults to the current directory.
        check: If True (default), raise ExternalCommandError on non-zero
               exit. Set to False for probing commands that may
               legitimately fail (e.g., tag lookup).

    Returns:
        Stripped stdout from the git command.
    """
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=False
    )
    if check and result.returncode != 0:
        raise ExternalCommandError(
            ["git", *args], result.returncode, result.stdout + result.stderr
        )
    return result.stdout.strip()


def git_succeeds(*args: str, cwd: Path | None = None) -> bool:
    """Run a git command and report only whether it exited with 0."""
    result = subprocess.run(["git", *args], cwd=cwd, capture_output=True)
    return result.returncode == 0


def run(*args: str, cwd: Path | None = None, check: bool = True) -> str:
    """Run an arbitrary command, capturing combined output.

    Used for the build commands (e.g., "make", "lint"). The output is
    returned so a failure can be reported with everything the command
    printed.
    """
    result = subprocess.run(
        args,
        cwd=cwd,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        check=False,
    )
    if check and result.returncode != 0:
        raise ExternalCommandError(list(args), result.returncode, result.stdout)
    return result.stdout


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate the phases of prerelease and tagging in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def warn(msg: str) -> None:
    """Print an advisory message that never changes the exit status."""
    print(f"WARNING: {msg}")


def find_repo_root(start: Path | None = None) -> Path:
    """Return the top-level directory of the git repository containing start.

    Raises:
        ExternalCommandError: If start is not inside a git repository.
    """
    return Path(git("rev-parse", "--show-toplevel", cwd=start))
