"""Gist operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from github_mini_cli.errors import ApiError, UsageError
from github_mini_cli.github.client import GitHubClient
from github_mini_cli.jsonfield import extract_field

logger = logging.getLogger(__name__)

GIST_DATE_FORMAT = "%Y/%m/%d(%a) %H:%M:%S"


@dataclass(frozen=True, slots=True)
class GistSummary:
    id: str
    public: bool
    updated_at: str

    @property
    def visibility(self) -> str:
        return "public" if self.public else "secret"

    def display_date(self) -> str:
        """``updated_at`` in local time, or the raw value if it cannot be parsed."""

        if not self.updated_at:
            return "(unknown)"
        try:
            parsed = datetime.fromisoformat(self.updated_at.replace("Z", "+00:00"))
        except ValueError:
            return self.updated_at
        return parsed.astimezone().strftime(GIST_DATE_FORMAT)


@dataclass(frozen=True, slots=True)
class GistUploadResult:
    url: str
    updated: bool


class GistService:
    def __init__(self, *, github: GitHubClient) -> None:
        self._github = github

    def list_gists(self) -> list[GistSummary]:
        gists: list[GistSummary] = []
        for item in self._github.list_gists():
            gist_id = extract_field(item, "id")
            if not gist_id:
                continue
            gists.append(
                GistSummary(
                    id=gist_id,
                    public=item.get("public") is True,
                    updated_at=item.get("updated_at") or "",
                )
            )
        return gists

    @staticmethod
    def read_files(files: list[Path]) -> dict[str, str]:
        """Map gist filenames to text content, skipping anything that is not a file.

        Gists are flat, so files are keyed by basename; a later file with the
        same basename replaces an earlier one.
        """

        contents: dict[str, str] = {}
        for path in files:
            if not path.is_file():
                logger.debug("Skipping non-file gist entry", extra={"path": str(path)})
                continue
            if path.name in contents:
                logger.warning("Duplicate gist filename", extra={"path": str(path)})
            contents[path.name] = path.read_text(encoding="utf-8", errors="replace")
        return contents

    def upload(
        self,
        files: list[Path],
        *,
        public: bool,
        description: str = "",
        gist_id: str = "",
    ) -> GistUploadResult:
        """Create a gist, or update ``gist_id`` when given."""

        contents = self.read_files(files)
        if not contents:
            raise UsageError("No files to upload.")

        if gist_id:
            resp = self._github.update_gist(
                gist_id=gist_id, files=contents, public=public, description=description
            )
        else:
            resp = self._github.create_gist(files=contents, public=public, description=description)

        url = resp.field("html_url")
        if not url:
            raise ApiError(resp.message, status_code=resp.status_code)
        logger.info(
            "Gist uploaded",
            extra={"gist_id": gist_id or resp.field("id"), "files": len(contents), "public": public},
        )
        return GistUploadResult(url=url, updated=bool(gist_id))

    def delete(self, gist_id: str) -> None:
        if not gist_id:
            raise UsageError("Usage: gh-mini -u USER gist delete -i GIST_ID")
        resp = self._github.delete_gist(gist_id=gist_id)
        if not resp.ok:
            raise ApiError(resp.message, status_code=resp.status_code)
        logger.info("Gist deleted", extra={"gist_id": gist_id})
