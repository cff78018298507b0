"""Unit tests for identity switching and releases (git runner mocked)."""

from __future__ import annotations

import io
import os
import subprocess
import tarfile
from pathlib import Path
from unittest.mock import Mock, call

import pytest

from github_mini_cli.errors import (
    GitCommandError,
    NotAGitRepository,
    UnsafeArchiveMember,
    UsageError,
)
from github_mini_cli.git import GitRunner
from github_mini_cli.services.local_git import (
    ReleasePublisher,
    identity_warnings,
    switch_identity,
)


def _tar(files: dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w") as tar:
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def test_identity_warnings() -> None:
    assert identity_warnings(
        user="octo", name="octo", email="octo@x", remote_url="https://github.com/octo/r.git"
    ) == []

    warnings = identity_warnings(user="octo", name="bob", email="bob@x", remote_url="")
    assert len(warnings) == 2
    assert warnings[0].startswith("Warning: remote URL ()")


def test_switch_identity_requires_git_dir(tmp_path: Path) -> None:
    git = Mock(spec=GitRunner)

    with pytest.raises(NotAGitRepository):
        switch_identity("octo", repo_dir=tmp_path, credentials_file=tmp_path / "c", git=git)
    git.run.assert_not_called()


def test_switch_identity_requires_user(tmp_path: Path) -> None:
    with pytest.raises(UsageError):
        switch_identity("", repo_dir=tmp_path, credentials_file=tmp_path / "c", git=Mock())


def test_switch_identity_configures_repo(tmp_path: Path) -> None:
    (tmp_path / ".git").mkdir()
    creds = tmp_path / "credentials-octo"
    git = Mock(spec=GitRunner)
    git.try_output.side_effect = ["octo", "octo@users.noreply.github.com", "git@github.com:bob/r.git"]

    switched = switch_identity("octo", repo_dir=tmp_path, credentials_file=creds, git=git)

    assert git.run.call_args_list == [
        call(["config", "user.name", "octo"], cwd=tmp_path),
        call(["config", "user.email", "octo@users.noreply.github.com"], cwd=tmp_path),
        call(["config", "credential.helper", f"store --file={creds}"], cwd=tmp_path),
    ]
    assert switched.user == "octo"
    assert len(switched.warnings) == 1
    assert "remote URL (git@github.com:bob/r.git)" in switched.warnings[0]


def test_release_stages_archive_and_force_pushes(tmp_path: Path) -> None:
    git = Mock(spec=GitRunner)
    git.try_output.return_value = str(tmp_path)
    git.archive_head.return_value = _tar({"README.md": b"hello", "src/app.py": b"print()"})
    staged: list[set[str]] = []

    def _run(args: list[str], *, cwd: Path | None = None, env: dict[str, str] | None = None) -> None:
        if args[0] == "add":
            assert cwd is not None
            staged.append({p.relative_to(cwd).as_posix() for p in cwd.rglob("*") if p.is_file()})

    git.run.side_effect = _run

    publisher = ReleasePublisher(
        git=git, username="octo", credentials_file=tmp_path / "credentials-octo"
    )
    url = publisher.release("demo", cwd=tmp_path / "sub")

    assert url == "https://github.com/octo/demo"
    git.archive_head.assert_called_once_with(cwd=tmp_path)
    assert staged == [{"README.md", "src/app.py"}]

    commands = [c.args[0] for c in git.run.call_args_list]
    assert commands[0] == ["init", "-q"]
    assert ["config", "user.email", "octo@users.noreply.github.com"] in commands
    assert ["remote", "add", "origin", "https://github.com/octo/demo.git"] in commands
    assert commands[-2:] == [["branch", "-M", "main"], ["push", "-f", "origin", "main"]]

    commit = next(c for c in git.run.call_args_list if c.args[0][0] == "commit")
    assert commit.kwargs["env"] == {
        "GIT_AUTHOR_DATE": "2023-01-01T00:00:00",
        "GIT_COMMITTER_DATE": "2023-01-01T00:00:00",
    }

    work_dir = git.run.call_args_list[0].kwargs["cwd"]
    assert not work_dir.exists()


def test_release_outside_repository_uses_cwd(tmp_path: Path) -> None:
    git = Mock(spec=GitRunner)
    git.try_output.return_value = ""
    git.archive_head.return_value = _tar({"a": b"a"})

    ReleasePublisher(git=git, username="octo").release("demo", cwd=tmp_path)

    git.archive_head.assert_called_once_with(cwd=tmp_path)


def test_release_cleans_up_on_push_failure(tmp_path: Path) -> None:
    git = Mock(spec=GitRunner)
    git.try_output.return_value = str(tmp_path)
    git.archive_head.return_value = _tar({"a": b"a"})

    def _run(args: list[str], **kwargs: object) -> None:
        if args[0] == "push":
            raise GitCommandError(["git", *args], 128, "fatal: Authentication failed")

    git.run.side_effect = _run

    with pytest.raises(GitCommandError, match="Authentication failed"):
        ReleasePublisher(git=git, username="octo").release("demo", cwd=tmp_path)

    work_dir = git.run.call_args_list[0].kwargs["cwd"]
    assert not work_dir.exists()


def test_stage_keeps_absolute_symlinks(tmp_path: Path) -> None:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w") as tar:
        link = tarfile.TarInfo("hosts")
        link.type = tarfile.SYMTYPE
        link.linkname = "/etc/hosts"
        tar.addfile(link)
    git = Mock(spec=GitRunner)
    git.archive_head.return_value = buf.getvalue()
    work_dir = tmp_path / "work"
    work_dir.mkdir()

    ReleasePublisher(git=git, username="octo").stage(tmp_path, work_dir)

    assert (work_dir / "hosts").is_symlink()
    assert os.readlink(work_dir / "hosts") == "/etc/hosts"


def test_stage_rejects_members_outside_release_dir(tmp_path: Path) -> None:
    git = Mock(spec=GitRunner)
    git.archive_head.return_value = _tar({"../evil.txt": b"x"})
    work_dir = tmp_path / "work"
    work_dir.mkdir()

    with pytest.raises(UnsafeArchiveMember, match="evil.txt"):
        ReleasePublisher(git=git, username="octo").stage(tmp_path, work_dir)

    assert not (tmp_path / "evil.txt").exists()


def test_release_requires_name(tmp_path: Path) -> None:
    with pytest.raises(UsageError):
        ReleasePublisher(git=Mock(), username="octo").release("", cwd=tmp_path)


def test_git_runner_raises_on_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    completed = subprocess.CompletedProcess(["git", "status"], 128, b"", b"fatal: not a git repository")
    run = Mock(return_value=completed)
    monkeypatch.setattr(subprocess, "run", run)

    runner = GitRunner()
    with pytest.raises(GitCommandError, match="not a git repository"):
        runner.run(["status"])

    assert runner.try_output(["status"]) == ""
    assert run.call_args.args[0] == ["git", "status"]


def test_git_runner_ls_files(monkeypatch: pytest.MonkeyPatch) -> None:
    completed = subprocess.CompletedProcess(["git", "ls-files"], 0, b"a.txt\nsrc/b.py\n", b"")
    monkeypatch.setattr(subprocess, "run", Mock(return_value=completed))

    assert GitRunner().ls_files() == ["a.txt", "src/b.py"]
