"""Exceptions raised by the CLI services.

Every error carries the user-facing text printed by the CLI.
"""

from __future__ import annotations


class GhMiniError(Exception):
    """Base class for expected, user-facing failures."""


class MissingUsername(GhMiniError):
    def __init__(self) -> None:
        super().__init__("Error: username is required (-u USER).")


class MissingToken(GhMiniError):
    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__(f"Error: no personal access token provided for {username}.")


class UsageError(GhMiniError):
    """Raised when a command is missing a required argument."""


class ApiError(GhMiniError):
    """Raised when GitHub answers without the field an operation expects."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.message = message or "Unknown error"
        self.status_code = status_code
        super().__init__(self.message)


class NotAGitRepository(GhMiniError):
    def __init__(self) -> None:
        super().__init__("Error: .git directory not found. Run this inside a git repository.")


class NoreplyEmailNotFound(GhMiniError):
    def __init__(self, settings_url: str) -> None:
        self.settings_url = settings_url
        super().__init__(
            "No noreply email found. Enable 'Keep my email address private' in GitHub settings.\n"
            f"URL: {settings_url}"
        )


class GitCommandError(GhMiniError):
    """Raised when a local git invocation exits non-zero."""

    def __init__(self, args: list[str], returncode: int, stderr: str = "") -> None:
        self.args_ = args
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip().splitlines()[-1] if stderr.strip() else f"exit code {returncode}"
        super().__init__(f"Error: `{' '.join(args)}` failed: {detail}")


class UnsafeArchiveMember(GhMiniError):
    """Raised when ``git archive`` output would extract outside the release directory."""

    def __init__(self, member: str, reason: str) -> None:
        self.member = member
        super().__init__(f"Error: refusing to release archive member '{member}': {reason}")
