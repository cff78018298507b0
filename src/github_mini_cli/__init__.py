"""GitHub mini CLI.

A small command-line wrapper around the GitHub REST API with:
- per-user personal access tokens stored in git credential files
- repository, contents, Pages and gist operations
- local git identity switching and history-reset releases
"""

__version__ = "0.1.0"

from github_mini_cli.config import CliSettings

__all__ = ["__version__", "CliSettings"]
