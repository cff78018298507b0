"""Thin subprocess wrapper around the local `git` executable."""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Mapping
from pathlib import Path

from github_mini_cli.errors import GitCommandError
from github_mini_cli.logging import log_fields

logger = logging.getLogger(__name__)


class GitRunner:
    """Run git commands in a working directory.

    Output is captured; callers decide what to show the user.
    """

    def __init__(self, executable: str = "git") -> None:
        self._executable = executable

    def run(
        self,
        args: list[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
    ) -> subprocess.CompletedProcess[bytes]:
        cmd = [self._executable, *args]
        logger.debug("Running git", extra=log_fields(args=args, cwd=str(cwd) if cwd else None))
        proc = subprocess.run(
            cmd,
            cwd=cwd,
            env={**os.environ, **env} if env else None,
            capture_output=True,
            check=False,
        )
        if check and proc.returncode != 0:
            stderr = proc.stderr.decode("utf-8", errors="replace")
            raise GitCommandError(cmd, proc.returncode, stderr)
        return proc

    def output(self, args: list[str], *, cwd: Path | None = None) -> str:
        """Return stripped stdout of a successful command."""

        proc = self.run(args, cwd=cwd)
        return proc.stdout.decode("utf-8", errors="replace").strip()

    def try_output(self, args: list[str], *, cwd: Path | None = None) -> str:
        """Like :meth:`output` but returns an empty string when git fails."""

        proc = self.run(args, cwd=cwd, check=False)
        if proc.returncode != 0:
            return ""
        return proc.stdout.decode("utf-8", errors="replace").strip()

    def archive_head(self, *, cwd: Path) -> bytes:
        """Tar archive of the tracked files at HEAD."""

        return self.run(["archive", "--format=tar", "HEAD"], cwd=cwd).stdout

    def ls_files(self, *, cwd: Path | None = None) -> list[str]:
        text = self.try_output(["ls-files"], cwd=cwd)
        return [line for line in text.splitlines() if line.strip()]
