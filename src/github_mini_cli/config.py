"""Configuration for the GitHub mini CLI.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Tokens are not configured here: they live in per-user git credential files
(see :mod:`github_mini_cli.credentials`). `GH_MINI_TOKEN` is only used as a
non-interactive source when a user has no stored token yet.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from github_mini_cli.logging import parse_level


class CliSettings(BaseSettings):
    """Settings for the CLI.

    Environment variables:
    - GITHUB_BASE_URL          (optional)
    - GITHUB_WEB_URL           (optional)
    - GIST_WEB_URL             (optional)
    - GH_MINI_CREDENTIALS_DIR  (optional)
    - GH_MINI_CREDENTIALS_HOST (optional)
    - GH_MINI_TOKEN            (optional)
    - GH_MINI_DEFAULT_BRANCH   (optional)
    - GH_MINI_RELEASE_DATE     (optional)
    - GH_MINI_REQUEST_TIMEOUT  (optional)
    - LOG_LEVEL                (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `CliSettings(_env_file=path_to_env)`.
    """

    github_base_url: str = Field(
        default="https://api.github.com",
        validation_alias="GITHUB_BASE_URL",
        description="GitHub API base URL (useful for GitHub Enterprise)",
    )
    github_web_url: str = Field(
        default="https://github.com",
        validation_alias="GITHUB_WEB_URL",
        description="GitHub web URL used for release remotes and settings links",
    )
    gist_web_url: str = Field(
        default="https://gist.github.com",
        validation_alias="GIST_WEB_URL",
        description="Gist web URL printed by `gist list`",
    )

    credentials_dir: Path = Field(
        default=Path("~/.git"),
        validation_alias="GH_MINI_CREDENTIALS_DIR",
        validate_default=True,
        description="Directory holding one `credentials-USER` file per user",
    )
    credentials_host: str = Field(
        default="github.com",
        validation_alias="GH_MINI_CREDENTIALS_HOST",
        description="Host written into newly stored credential lines",
    )
    token: str = Field(
        default="",
        validation_alias="GH_MINI_TOKEN",
        description="Token stored on first use instead of prompting",
    )

    default_branch: str = Field(
        default="main",
        validation_alias="GH_MINI_DEFAULT_BRANCH",
        description="Branch used by push, tree, diff and release",
    )
    release_date: str = Field(
        default="2023-01-01T00:00:00",
        validation_alias="GH_MINI_RELEASE_DATE",
        description="Author/committer date of the single release commit",
    )
    request_timeout: float = Field(
        default=30.0,
        gt=0,
        validation_alias="GH_MINI_REQUEST_TIMEOUT",
        description="HTTP timeout in seconds",
    )

    log_level: str = Field(
        default="WARNING",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level", mode="after")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        return parse_level(value)

    @field_validator("credentials_dir", mode="after")
    @classmethod
    def _expand_user(cls, value: Path) -> Path:
        return value.expanduser()

    @field_validator("github_base_url", "github_web_url", "gist_web_url", mode="after")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    def credentials_file(self, username: str) -> Path:
        """Path of the credential store for ``username``."""

        return self.credentials_dir / f"credentials-{username}"

    @property
    def emails_settings_url(self) -> str:
        return f"{self.github_web_url}/settings/emails"
