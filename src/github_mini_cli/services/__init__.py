"""Command implementations, one service per resource."""

from github_mini_cli.services.account import AccountService, AccountStatus, check_status
from github_mini_cli.services.gists import GistService
from github_mini_cli.services.local_git import ReleasePublisher, switch_identity
from github_mini_cli.services.repos import RepoService

__all__ = [
    "AccountService",
    "AccountStatus",
    "GistService",
    "ReleasePublisher",
    "RepoService",
    "check_status",
    "switch_identity",
]
