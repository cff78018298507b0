"""GitHub REST client.

This intentionally stays a thin `requests` wrapper: every method performs one
HTTP call and returns the raw :class:`ApiResponse`. Deciding whether a
response means success (usually "does it carry ``html_url``?") is left to the
services, which report GitHub's own ``message`` field on failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import requests

from github_mini_cli.errors import ApiError
from github_mini_cli.jsonfield import extract_field, parse_json

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ApiResponse:
    """Status code and body of a GitHub REST response."""

    status_code: int
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """Parsed body, or ``None`` when empty / not JSON."""

        return parse_json(self.text)

    def field(self, key: str) -> str:
        """First scalar value stored under ``key`` (empty string if absent)."""

        return extract_field(self.json(), key)

    @property
    def message(self) -> str:
        return self.field("message")

    @classmethod
    def from_response(cls, resp: requests.Response) -> ApiResponse:
        return cls(status_code=resp.status_code, text=resp.text or "")


class GitHubClient:
    """Small wrapper around the GitHub REST endpoints the CLI needs."""

    def __init__(
        self,
        *,
        token: str,
        base_url: str = "https://api.github.com",
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        if not token:
            raise ValueError("GitHub token is required")

        self._rest_base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"token {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": "github-mini-cli",
            }
        )

    def _url(self, path: str) -> str:
        path = path.lstrip("/")
        return f"{self._rest_base_url}/{path}"

    def _repo_url(self, *, owner: str, repo: str, path: str = "") -> str:
        base = f"repos/{owner.strip('/')}/{repo.strip('/')}"
        path = path.lstrip("/")
        return self._url(f"{base}/{path}" if path else base)

    def request(
        self,
        method: str,
        path_or_url: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> ApiResponse:
        """Perform one request and wrap the response.

        HTTP error statuses are returned, not raised; transport errors
        (`requests.RequestException`) propagate.
        """

        url = path_or_url if path_or_url.startswith("http") else self._url(path_or_url)
        logger.debug("GitHub request", extra={"method": method, "url": url})
        resp = self._session.request(
            method,
            url,
            json=json,
            params=params,
            timeout=self._timeout,
        )
        result = ApiResponse.from_response(resp)
        if not result.ok:
            logger.info(
                "GitHub request failed",
                extra={"method": method, "url": url, "status": result.status_code},
            )
        return result

    def _get_paginated_json_list(self, path: str, *, max_pages: int = 10) -> list[dict[str, Any]]:
        """Fetch a REST endpoint that returns a JSON list, following basic pagination.

        Stops at the first page that is short, not a list, or not a 2xx.
        """

        items: list[dict[str, Any]] = []
        per_page = 100
        for page in range(1, max_pages + 1):
            resp = self.request("GET", path, params={"per_page": per_page, "page": page})
            payload = resp.json()
            if not resp.ok or not isinstance(payload, list):
                if page == 1:
                    raise ApiError(resp.message, status_code=resp.status_code)
                break

            items.extend(p for p in payload if isinstance(p, dict))

            if len(payload) < per_page:
                break
        return items

    # Repositories

    def list_user_repositories(self) -> list[dict[str, Any]]:
        return self._get_paginated_json_list("user/repos")

    def create_repository(self, *, name: str, private: bool = True) -> ApiResponse:
        return self.request("POST", "user/repos", json={"name": name, "private": private})

    def delete_repository(self, *, owner: str, repo: str) -> ApiResponse:
        return self.request("DELETE", self._repo_url(owner=owner, repo=repo))

    def update_repository(self, *, owner: str, repo: str, **changes: Any) -> ApiResponse:
        return self.request("PATCH", self._repo_url(owner=owner, repo=repo), json=changes)

    def get_contents(self, *, owner: str, repo: str, path: str, ref: str = "") -> ApiResponse:
        url = self._repo_url(owner=owner, repo=repo, path=f"contents/{quote(path.lstrip('/'))}")
        return self.request("GET", url, params={"ref": ref} if ref.strip() else None)

    def put_contents(
        self,
        *,
        owner: str,
        repo: str,
        path: str,
        message: str,
        content_b64: str,
        branch: str,
        sha: str | None = None,
    ) -> ApiResponse:
        """Create or update a file via the contents API."""

        url = self._repo_url(owner=owner, repo=repo, path=f"contents/{quote(path.lstrip('/'))}")
        payload: dict[str, Any] = {
            "message": message,
            "content": content_b64,
            "branch": branch,
        }
        if sha is not None and sha.strip():
            payload["sha"] = sha
        return self.request("PUT", url, json=payload)

    def get_tree(self, *, owner: str, repo: str, ref: str, recursive: bool = True) -> ApiResponse:
        url = self._repo_url(owner=owner, repo=repo, path=f"git/trees/{quote(ref)}")
        return self.request("GET", url, params={"recursive": 1} if recursive else None)

    # Pages

    def create_pages_site(self, *, owner: str, repo: str, branch: str, path: str) -> ApiResponse:
        url = self._repo_url(owner=owner, repo=repo, path="pages")
        return self.request("POST", url, json={"source": {"branch": branch, "path": path}})

    def update_pages_site(self, *, owner: str, repo: str, branch: str, path: str) -> ApiResponse:
        url = self._repo_url(owner=owner, repo=repo, path="pages")
        return self.request("PUT", url, json={"source": {"branch": branch, "path": path}})

    def get_pages_site(self, *, owner: str, repo: str) -> ApiResponse:
        return self.request("GET", self._repo_url(owner=owner, repo=repo, path="pages"))

    def delete_pages_site(self, *, owner: str, repo: str) -> ApiResponse:
        return self.request("DELETE", self._repo_url(owner=owner, repo=repo, path="pages"))

    # Users

    def list_emails(self) -> ApiResponse:
        return self.request("GET", "user/emails")

    def update_authenticated_user(self, **changes: Any) -> ApiResponse:
        return self.request("PATCH", "user", json=changes)

    def get_user(self, *, username: str) -> ApiResponse:
        return self.request("GET", f"users/{quote(username)}")

    # Gists

    def list_gists(self) -> list[dict[str, Any]]:
        return self._get_paginated_json_list("gists")

    def create_gist(self, *, files: dict[str, str], public: bool, description: str = "") -> ApiResponse:
        return self.request("POST", "gists", json=self._gist_payload(files, public, description))

    def update_gist(
        self,
        *,
        gist_id: str,
        files: dict[str, str],
        public: bool,
        description: str = "",
    ) -> ApiResponse:
        return self.request(
            "PATCH", f"gists/{quote(gist_id)}", json=self._gist_payload(files, public, description)
        )

    def delete_gist(self, *, gist_id: str) -> ApiResponse:
        return self.request("DELETE", f"gists/{quote(gist_id)}")

    @staticmethod
    def _gist_payload(files: dict[str, str], public: bool, description: str) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "public": public,
            "files": {name: {"content": content} for name, content in files.items()},
        }
        if description:
            payload["description"] = description
        return payload

    def close(self) -> None:
        self._session.close()
        logger.debug("GitHub client closed")
