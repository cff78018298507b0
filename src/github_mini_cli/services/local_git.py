"""Local git operations: identity switching and history-reset releases."""

from __future__ import annotations

import io
import logging
import tarfile
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from github_mini_cli.errors import NotAGitRepository, UnsafeArchiveMember, UsageError
from github_mini_cli.git import GitRunner
from github_mini_cli.services.account import noreply_address

logger = logging.getLogger(__name__)

RELEASE_COMMIT_MESSAGE = "Release"


@dataclass(frozen=True, slots=True)
class IdentitySwitch:
    user: str
    warnings: list[str] = field(default_factory=list)


def credential_helper(credentials_file: Path) -> str:
    return f"store --file={credentials_file}"


def identity_warnings(*, user: str, name: str, email: str, remote_url: str) -> list[str]:
    """Warnings for a repository whose identity does not look like ``user``."""

    warnings: list[str] = []
    if user not in remote_url:
        warnings.append(
            f"Warning: remote URL ({remote_url}) does not seem to match expected user ({user})."
        )
    if user not in name and user not in email:
        warnings.append(
            f"Warning: current git user.name ({name}) or user.email ({email}) "
            f"does not match expected user ({user})."
        )
    return warnings


def switch_identity(
    user: str,
    *,
    repo_dir: Path,
    credentials_file: Path,
    git: GitRunner,
) -> IdentitySwitch:
    """Point the repository's git identity and credential helper at ``user``."""

    if not user:
        raise UsageError("Usage: gh-mini iam <user>")
    if not (repo_dir / ".git").is_dir():
        raise NotAGitRepository()

    git.run(["config", "user.name", user], cwd=repo_dir)
    git.run(["config", "user.email", noreply_address(user)], cwd=repo_dir)
    git.run(["config", "credential.helper", credential_helper(credentials_file)], cwd=repo_dir)

    warnings = identity_warnings(
        user=user,
        name=git.try_output(["config", "user.name"], cwd=repo_dir),
        email=git.try_output(["config", "user.email"], cwd=repo_dir),
        remote_url=git.try_output(["remote", "get-url", "origin"], cwd=repo_dir),
    )
    logger.info("Git identity switched", extra={"user": user, "repo_dir": str(repo_dir)})
    return IdentitySwitch(user=user, warnings=warnings)


class ReleasePublisher:
    """Publish the tracked files at HEAD as a single-commit history.

    The target branch is force-pushed, so any previous history on the remote
    is replaced. The commit date is fixed, which keeps identical trees
    producing identical commits.
    """

    def __init__(
        self,
        *,
        git: GitRunner,
        username: str,
        web_url: str = "https://github.com",
        branch: str = "main",
        release_date: str = "2023-01-01T00:00:00",
        credentials_file: Path | None = None,
    ) -> None:
        self._git = git
        self._username = username
        self._web_url = web_url.rstrip("/")
        self._branch = branch
        self._release_date = release_date
        self._credentials_file = credentials_file

    def repository_url(self, name: str) -> str:
        return f"{self._web_url}/{self._username}/{name}"

    def source_dir(self, cwd: Path) -> Path:
        top = self._git.try_output(["rev-parse", "--show-toplevel"], cwd=cwd)
        return Path(top) if top else cwd

    def stage(self, src_dir: Path, work_dir: Path) -> None:
        """Extract ``git archive HEAD`` of ``src_dir`` into ``work_dir``.

        Symlinks are kept as committed, including absolute targets.
        """

        archive = self._git.archive_head(cwd=src_dir)
        with tarfile.open(fileobj=io.BytesIO(archive), mode="r:") as tar:
            try:
                tar.extractall(work_dir, filter="tar")
            except tarfile.FilterError as e:
                raise UnsafeArchiveMember(e.tarinfo.name, str(e)) from e

    def commit_and_push(self, name: str, work_dir: Path) -> None:
        git = self._git
        git.run(["init", "-q"], cwd=work_dir)
        git.run(["config", "user.name", self._username], cwd=work_dir)
        git.run(["config", "user.email", noreply_address(self._username)], cwd=work_dir)
        if self._credentials_file is not None:
            git.run(
                ["config", "credential.helper", credential_helper(self._credentials_file)],
                cwd=work_dir,
            )
        git.run(["remote", "add", "origin", f"{self.repository_url(name)}.git"], cwd=work_dir)
        git.run(["add", "."], cwd=work_dir)
        git.run(
            ["commit", "-q", "-m", RELEASE_COMMIT_MESSAGE],
            cwd=work_dir,
            env={
                "GIT_AUTHOR_DATE": self._release_date,
                "GIT_COMMITTER_DATE": self._release_date,
            },
        )
        git.run(["branch", "-M", self._branch], cwd=work_dir)
        git.run(["push", "-f", "origin", self._branch], cwd=work_dir)

    def release(self, name: str, *, cwd: Path) -> str:
        """Publish and return the repository web URL."""

        if not name or not name.strip():
            raise UsageError("Repository name is required.")

        src_dir = self.source_dir(cwd)
        with tempfile.TemporaryDirectory(prefix="gh-mini-release-") as tmp:
            work_dir = Path(tmp)
            logger.info(
                "Releasing",
                extra={"repo": name, "src_dir": str(src_dir), "work_dir": str(work_dir)},
            )
            self.stage(src_dir, work_dir)
            self.commit_and_push(name, work_dir)
        return self.repository_url(name)
