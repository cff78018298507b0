"""Test configuration and fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import Mock

import pytest

from github_mini_cli.github.client import ApiResponse, GitHubClient

_SETTINGS_ENV_VARS = (
    "GITHUB_BASE_URL",
    "GITHUB_WEB_URL",
    "GIST_WEB_URL",
    "GH_MINI_CREDENTIALS_DIR",
    "GH_MINI_CREDENTIALS_HOST",
    "GH_MINI_TOKEN",
    "GH_MINI_DEFAULT_BRANCH",
    "GH_MINI_RELEASE_DATE",
    "GH_MINI_REQUEST_TIMEOUT",
    "LOG_LEVEL",
)


@pytest.fixture
def clean_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate settings from the developer's environment and `.env`."""
    for name in _SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def credentials_dir(clean_env: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A temporary credentials directory wired into the settings."""
    path = clean_env / "creds"
    path.mkdir()
    monkeypatch.setenv("GH_MINI_CREDENTIALS_DIR", str(path))
    return path


@pytest.fixture
def api_response() -> Callable[..., ApiResponse]:
    """Build an ApiResponse from a status code and a JSON-able payload."""

    def _make(status_code: int = 200, payload: Any = None, text: str | None = None) -> ApiResponse:
        if text is None:
            text = "" if payload is None else json.dumps(payload)
        return ApiResponse(status_code=status_code, text=text)

    return _make


@pytest.fixture
def mock_github() -> Mock:
    """A GitHubClient mock with no default behaviour."""
    return Mock(spec=GitHubClient)
