"""GitHub REST access."""

from github_mini_cli.github.client import ApiResponse, GitHubClient

__all__ = ["ApiResponse", "GitHubClient"]
