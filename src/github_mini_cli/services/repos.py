"""Repository operations for the authenticated user.

Each operation is one request (or one short request sequence) against the
REST API. Failures are surfaced as :class:`~github_mini_cli.errors.ApiError`
carrying GitHub's ``message`` field.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from pathlib import Path

from github_mini_cli.errors import ApiError, UsageError
from github_mini_cli.github.client import GitHubClient
from github_mini_cli.jsonfield import extract_field

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RepositorySummary:
    name: str
    private: bool


@dataclass(frozen=True, slots=True)
class CreatedRepository:
    html_url: str
    clone_url: str


@dataclass(frozen=True, slots=True)
class PushOutcome:
    """Result of pushing one local file through the contents API."""

    path: str
    url: str | None = None
    message: str | None = None
    skipped: bool = False

    @property
    def uploaded(self) -> bool:
        return self.url is not None


def require_repo(name: str | None) -> str:
    if not name or not name.strip():
        raise UsageError("Repository name is required.")
    return name.strip()


class RepoService:
    """Repository-level commands scoped to one GitHub user."""

    def __init__(self, *, github: GitHubClient, username: str, default_branch: str = "main") -> None:
        self._github = github
        self._username = username
        self._default_branch = default_branch

    @property
    def username(self) -> str:
        return self._username

    def list_repositories(self) -> list[RepositorySummary]:
        repos: list[RepositorySummary] = []
        for item in self._github.list_user_repositories():
            name = extract_field(item, "name")
            if not name:
                continue
            repos.append(RepositorySummary(name=name, private=item.get("private") is True))
        logger.debug("Listed repositories", extra={"count": len(repos)})
        return repos

    def create_repository(self, name: str) -> CreatedRepository:
        """Create a private repository."""

        name = require_repo(name)
        resp = self._github.create_repository(name=name, private=True)
        url = resp.field("html_url")
        if not url:
            raise ApiError(resp.message, status_code=resp.status_code)
        logger.info("Repository created", extra={"repo": name, "url": url})
        return CreatedRepository(html_url=url, clone_url=resp.field("clone_url"))

    def delete_repository(self, name: str) -> None:
        name = require_repo(name)
        resp = self._github.delete_repository(owner=self._username, repo=name)
        if not resp.ok:
            raise ApiError(resp.message, status_code=resp.status_code)
        logger.info("Repository deleted", extra={"repo": name})

    def set_visibility(self, name: str, *, private: bool) -> None:
        name = require_repo(name)
        resp = self._github.update_repository(owner=self._username, repo=name, private=private)
        expected = "true" if private else "false"
        if resp.field("private") != expected:
            raise ApiError(resp.message, status_code=resp.status_code)
        logger.info("Repository visibility changed", extra={"repo": name, "private": private})

    def rename_repository(self, old: str, new: str) -> str:
        """Rename ``old`` to ``new`` and return the new web URL."""

        if not old or not new:
            raise UsageError("Usage: gh-mini -u USER repo rename OLD NEW")
        resp = self._github.update_repository(owner=self._username, repo=old, name=new)
        url = resp.field("html_url")
        if not url:
            raise ApiError(resp.message, status_code=resp.status_code)
        return url

    def push_file(self, repo: str, *, path: Path, comment: str, branch: str | None = None) -> PushOutcome:
        """Upload one local file to the same relative path in ``repo``."""

        display = str(path)
        if not path.is_file():
            return PushOutcome(path=display, skipped=True)

        branch = branch or self._default_branch
        remote_path = path.name if path.is_absolute() else path.as_posix()
        content_b64 = base64.b64encode(path.read_bytes()).decode("ascii")

        existing = self._github.get_contents(owner=self._username, repo=repo, path=remote_path, ref=branch)
        sha = existing.field("sha") if existing.ok else ""

        resp = self._github.put_contents(
            owner=self._username,
            repo=repo,
            path=remote_path,
            message=comment,
            content_b64=content_b64,
            branch=branch,
            sha=sha or None,
        )
        url = resp.field("html_url")
        if url:
            logger.info("File pushed", extra={"repo": repo, "path": remote_path, "updated": bool(sha)})
            return PushOutcome(path=display, url=url)
        return PushOutcome(path=display, message=resp.message or "Unknown error")

    def push_files(
        self,
        repo: str,
        *,
        comment: str,
        files: list[Path],
        branch: str | None = None,
    ) -> list[PushOutcome]:
        repo = require_repo(repo)
        return [self.push_file(repo, path=f, comment=comment, branch=branch) for f in files]

    def list_tree(self, name: str, branch: str | None = None) -> list[str]:
        """Return every path in the branch tree, in API order."""

        name = require_repo(name)
        resp = self._github.get_tree(owner=self._username, repo=name, ref=branch or self._default_branch)
        data = resp.json()
        tree = data.get("tree") if isinstance(data, dict) else None
        if not isinstance(tree, list):
            raise ApiError(resp.message, status_code=resp.status_code)
        return [
            entry["path"]
            for entry in tree
            if isinstance(entry, dict) and isinstance(entry.get("path"), str) and entry["path"]
        ]

    def missing_locally(self, name: str, branch: str | None = None, *, root: Path) -> list[str]:
        """Paths present in the remote tree but absent under ``root``."""

        remote = set(self.list_tree(name, branch))
        local = {p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_file()}
        return sorted(remote - local)

    def enable_pages(self, name: str, *, branch: str, path: str = "/") -> str:
        """Publish Pages from ``branch``/``path`` and return the site URL.

        Creates the site; when one already exists (409) its source is updated.
        """

        name = require_repo(name)
        path = path or "/"
        resp = self._github.create_pages_site(owner=self._username, repo=name, branch=branch, path=path)
        if resp.status_code == 409:
            update = self._github.update_pages_site(owner=self._username, repo=name, branch=branch, path=path)
            if not update.ok:
                raise ApiError(update.message, status_code=update.status_code)
            resp = self._github.get_pages_site(owner=self._username, repo=name)

        url = resp.field("html_url")
        if not url:
            raise ApiError(resp.message, status_code=resp.status_code)
        logger.info("Pages enabled", extra={"repo": name, "branch": branch, "path": path})
        return url

    def disable_pages(self, name: str) -> None:
        name = require_repo(name)
        resp = self._github.delete_pages_site(owner=self._username, repo=name)
        if not resp.ok:
            raise ApiError(resp.message, status_code=resp.status_code)
        logger.info("Pages disabled", extra={"repo": name})
