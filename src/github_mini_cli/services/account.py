"""Account-level commands: noreply email and per-user status."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from github_mini_cli.errors import ApiError, NoreplyEmailNotFound
from github_mini_cli.github.client import GitHubClient

logger = logging.getLogger(__name__)

NOREPLY_DOMAIN = "users.noreply.github.com"


def noreply_address(username: str) -> str:
    """Legacy noreply address used for local git identities."""

    return f"{username}@{NOREPLY_DOMAIN}"


def _emails(payload: Any) -> list[str]:
    if not isinstance(payload, list):
        return []
    return [
        item["email"]
        for item in payload
        if isinstance(item, dict) and isinstance(item.get("email"), str)
    ]


@dataclass(frozen=True, slots=True)
class AccountStatus:
    user: str
    noreply: str
    graph: str

    def __str__(self) -> str:
        return f"{self.user}: noreply={self.noreply} graph={self.graph}"


class AccountService:
    def __init__(self, *, github: GitHubClient, settings_url: str = "https://github.com/settings/emails") -> None:
        self._github = github
        self._settings_url = settings_url

    def find_noreply_email(self) -> str | None:
        resp = self._github.list_emails()
        for email in _emails(resp.json()):
            if email.endswith(f"@{NOREPLY_DOMAIN}"):
                return email
        return None

    def use_noreply_email(self) -> str:
        """Make the account's noreply address its public email and return it."""

        email = self.find_noreply_email()
        if email is None:
            raise NoreplyEmailNotFound(self._settings_url)
        resp = self._github.update_authenticated_user(email=email)
        if not resp.ok:
            raise ApiError(resp.message, status_code=resp.status_code)
        logger.info("Public email set to noreply address")
        return email


def check_status(user: str, github: GitHubClient) -> AccountStatus:
    """Report noreply and contribution graph state for ``user``."""

    emails_resp = github.list_emails()
    logger.debug("Emails response", extra={"user": user, "status": emails_resp.status_code})

    pattern = re.compile(rf"^[0-9]+\+{re.escape(user)}@{re.escape(NOREPLY_DOMAIN)}$")
    if emails_resp.status_code == 404:
        noreply = "404"
    elif any(pattern.match(email) for email in _emails(emails_resp.json())):
        noreply = "ON"
    else:
        noreply = "OFF"

    graph_resp = github.get_user(username=user)
    graph_data = graph_resp.json()
    visible = isinstance(graph_data, dict) and "contributions_collection" in graph_data
    graph = "VISIBLE" if visible else "HIDDEN"

    return AccountStatus(user=user, noreply=noreply, graph=graph)


def check_all_statuses(
    users: list[str],
    *,
    token_for: Callable[[str], str | None],
    client_factory: Callable[[str], GitHubClient],
) -> list[AccountStatus]:
    """Run :func:`check_status` for each user that has a stored token."""

    statuses: list[AccountStatus] = []
    for user in users:
        token = token_for(user)
        if not token:
            logger.warning("No stored token; skipping", extra={"user": user})
            continue
        github = client_factory(token)
        try:
            statuses.append(check_status(user, github))
        finally:
            github.close()
    return statuses
