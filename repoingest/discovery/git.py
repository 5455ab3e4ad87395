"""Git-based file discovery.

Lists tracked files (respecting .gitignore) and the files changed since a
ref. Any git failure is fatal for the run.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from repoingest.core.errors import GitError


def _run_git(args: list[str], cwd: Path) -> bytes:
    command = " ".join(["git", *args])
    try:
        result = subprocess.run(
            ["git", *args],
            capture_output=True,
            cwd=cwd,
            timeout=60,
        )
    except (subprocess.SubprocessError, OSError) as exc:
        raise GitError(command, str(exc)) from exc

    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace").strip()
        raise GitError(command, f"exit status {result.returncode}: {stderr}")
    return result.stdout


def list_tracked_files(root: Path) -> list[str]:
    """Tracked file paths relative to root, in git's order.

    Paths that are not valid UTF-8 are dropped.
    """
    output = _run_git(["ls-files", "-z"], root)
    files: list[str] = []
    for part in output.split(b"\x00"):
        if not part:
            continue
        try:
            files.append(part.decode("utf-8"))
        except UnicodeDecodeError:
            continue
    return files


def files_changed_since(ref: str, root: Path) -> set[str]:
    """Paths that differ between ref and the working tree."""
    output = _run_git(["diff", "--name-only", ref], root)
    return {
        line.strip()
        for line in output.decode("utf-8", errors="replace").splitlines()
        if line.strip()
    }
