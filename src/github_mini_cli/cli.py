"""CLI entrypoint.

    gh-mini [-u USER] ACTION [SUBCOMMAND] [ARGS...]

Result lines go to stdout; structured logs go to stderr.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import requests
from pydantic import ValidationError

from github_mini_cli import __version__
from github_mini_cli.config import CliSettings
from github_mini_cli.credentials import (
    CredentialResolver,
    TokenProvider,
    prompt_for_token,
    static_token_provider,
)
from github_mini_cli.errors import ApiError, GhMiniError, UsageError
from github_mini_cli.git import GitRunner
from github_mini_cli.github.client import GitHubClient
from github_mini_cli.logging import LEVEL_NAMES, configure_logging, parse_level
from github_mini_cli.services.account import (
    AccountService,
    check_all_statuses,
    noreply_address,
)
from github_mini_cli.services.gists import GistService
from github_mini_cli.services.local_git import ReleasePublisher, switch_identity
from github_mini_cli.services.repos import RepoService, require_repo

logger = logging.getLogger(__name__)

USAGE = """\
Usage:
  gh-mini -u USER repo list
  gh-mini -u USER repo create REPO
  gh-mini -u USER repo delete REPO [--yes]
  gh-mini -u USER repo public REPO
  gh-mini -u USER repo private REPO
  gh-mini -u USER repo rename OLD NEW
  gh-mini -u USER repo push REPO COMMENT FILE1 [FILE2 ...]
  gh-mini -u USER repo tree REPO [BRANCH]
  gh-mini -u USER repo diff REPO [BRANCH]
  gh-mini -u USER repo pages REPO [BRANCH] [PATH]
  gh-mini -u USER gist list
  gh-mini -u USER gist public  [-d DESC] [-i GIST_ID] [FILES...]
  gh-mini -u USER gist secret  [-d DESC] [-i GIST_ID] [FILES...]
  gh-mini -u USER gist delete  -i GIST_ID [--yes]
  gh-mini -u USER noreply
  gh-mini iam USER
  gh-mini status
  gh-mini -u USER release REPO"""


def confirm_prompt(question: str) -> bool:
    """Default confirmation: only an explicit y/Y proceeds."""

    answer = input(f"{question} [y/N]: ")
    return answer.strip() in {"y", "Y"}


@dataclass
class CliContext:
    """Everything a command needs, resolved once per invocation."""

    settings: CliSettings
    resolver: CredentialResolver
    username: str | None = None
    git: GitRunner = field(default_factory=GitRunner)
    cwd: Path = field(default_factory=Path.cwd)
    confirm: Callable[[str], bool] = confirm_prompt

    def client(self, token: str) -> GitHubClient:
        return GitHubClient(
            token=token,
            base_url=self.settings.github_base_url,
            timeout=self.settings.request_timeout,
        )

    def authenticated_client(self) -> tuple[str, GitHubClient]:
        """Resolve the token for ``-u USER`` and build a client for it."""

        token = self.resolver.resolve(self.username)
        assert self.username is not None
        return self.username, self.client(token)


def _log_level(value: str) -> str:
    try:
        return parse_level(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gh-mini",
        description="Small GitHub CLI with per-user personal access tokens",
        usage="gh-mini [-u USER] ACTION [SUBCOMMAND] [ARGS...]",
        epilog=USAGE,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"github-mini-cli {__version__}")
    parser.add_argument("-u", "--user", dest="username", default=None, help="GitHub username")
    parser.add_argument(
        "--log-level",
        default=None,
        type=_log_level,
        metavar="LEVEL",
        help=f"Override LOG_LEVEL ({', '.join(LEVEL_NAMES)})",
    )

    actions = parser.add_subparsers(dest="action")

    repo = actions.add_parser("repo", help="Repository operations")
    repo_sub = repo.add_subparsers(dest="subcommand")

    repo_sub.add_parser("list", help="List your repositories")

    create = repo_sub.add_parser("create", help="Create a private repository")
    create.add_argument("name", nargs="?")

    delete = repo_sub.add_parser("delete", help="Delete a repository")
    delete.add_argument("name", nargs="?")
    delete.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")

    for visibility in ("public", "private"):
        vis = repo_sub.add_parser(visibility, help=f"Make a repository {visibility}")
        vis.add_argument("name", nargs="?")

    rename = repo_sub.add_parser("rename", help="Rename a repository")
    rename.add_argument("old", nargs="?")
    rename.add_argument("new", nargs="?")

    push = repo_sub.add_parser("push", help="Upload files through the contents API")
    push.add_argument("name", nargs="?")
    push.add_argument("comment", nargs="?", default="")
    push.add_argument("files", nargs="*", type=Path)

    for name, help_text in (
        ("tree", "List every path in a branch"),
        ("diff", "List remote files missing locally"),
    ):
        tree = repo_sub.add_parser(name, help=help_text)
        tree.add_argument("name", nargs="?")
        tree.add_argument("branch", nargs="?", default=None)

    pages = repo_sub.add_parser("pages", help="Enable (with BRANCH) or disable GitHub Pages")
    pages.add_argument("name", nargs="?")
    pages.add_argument("branch", nargs="?", default=None)
    pages.add_argument("path", nargs="?", default="/")

    gist = actions.add_parser("gist", help="Gist operations")
    gist_sub = gist.add_subparsers(dest="subcommand")
    gist_sub.add_parser("list", help="List your gists")
    for visibility in ("public", "secret"):
        upload = gist_sub.add_parser(visibility, help=f"Create or update a {visibility} gist")
        upload.add_argument("-d", dest="description", default="", help="Gist description")
        upload.add_argument("-i", dest="gist_id", default="", help="Existing gist to update")
        upload.add_argument("files", nargs="*", type=Path)
    gist_delete = gist_sub.add_parser("delete", help="Delete a gist")
    gist_delete.add_argument("-i", dest="gist_id", default="", help="Gist to delete")
    gist_delete.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")

    actions.add_parser("noreply", help="Use your noreply address as public email")

    iam = actions.add_parser("iam", help="Switch this repository's git identity")
    iam.add_argument("iam_user", nargs="?", default="")

    actions.add_parser("status", help="Show noreply/graph status for every stored user")

    release = actions.add_parser("release", help="Force-push HEAD as a single release commit")
    release.add_argument("name", nargs="?")

    return parser


# repo


def _repo_list(ctx: CliContext, args: argparse.Namespace, repos: RepoService) -> int:
    print(f"Listing repositories for {repos.username}...")
    for summary in repos.list_repositories():
        kind = "[private]" if summary.private else "[public]"
        print(f"{summary.name}  {kind}")
    return 0


def _repo_create(ctx: CliContext, args: argparse.Namespace, repos: RepoService) -> int:
    name = require_repo(args.name)
    print(f"Creating private repository '{name}'...")
    created = repos.create_repository(name)
    user = repos.username
    print(f"Created private repository: {created.html_url}")
    print()
    print("Next steps you may need to do:")
    print("  git init")
    print(f'  git config user.name "{user}"')
    print(f'  git config user.email "{noreply_address(user)}"')
    print("  git add .")
    print('  git commit -m "Initial commit"')
    print(f"  git remote add origin {created.clone_url}")
    print(f"  git branch -M {ctx.settings.default_branch}")
    print(f"  git push -u origin {ctx.settings.default_branch}")
    return 0


def _repo_delete(ctx: CliContext, args: argparse.Namespace, repos: RepoService) -> int:
    name = require_repo(args.name)
    if not args.yes and not ctx.confirm(f"Are you sure you want to delete '{name}'?"):
        print("Cancelled.")
        return 0
    repos.delete_repository(name)
    print("Deleted.")
    return 0


def _repo_visibility(ctx: CliContext, args: argparse.Namespace, repos: RepoService) -> int:
    name = require_repo(args.name)
    private = args.subcommand == "private"
    print(f"Setting '{name}' to {args.subcommand}...")
    repos.set_visibility(name, private=private)
    print("Success.")
    return 0


def _repo_rename(ctx: CliContext, args: argparse.Namespace, repos: RepoService) -> int:
    if not args.old or not args.new:
        raise UsageError("Usage: gh-mini -u USER repo rename OLD NEW")
    print(f"Renaming '{args.old}' to '{args.new}'...")
    url = repos.rename_repository(args.old, args.new)
    print(f"Renamed: {url}")
    return 0


def _repo_push(ctx: CliContext, args: argparse.Namespace, repos: RepoService) -> int:
    name = require_repo(args.name)
    files: list[Path] = args.files
    print(f"Pushing {len(files)} file(s) to {repos.username}/{name} ...")
    failed = 0
    for outcome in repos.push_files(name, comment=args.comment, files=files):
        if outcome.skipped:
            print(f"Warning: {outcome.path} not found, skipping.")
        elif outcome.uploaded:
            print(f"{outcome.path} uploaded → {outcome.url}")
        else:
            failed += 1
            print(f"Failed to push {outcome.path}: {outcome.message}")
    return 1 if failed else 0


def _repo_tree(ctx: CliContext, args: argparse.Namespace, repos: RepoService) -> int:
    name = require_repo(args.name)
    branch = args.branch or ctx.settings.default_branch
    print(f"Fetching tree for {repos.username}/{name} (branch: {branch})...")
    try:
        paths = repos.list_tree(name, branch)
    except ApiError as e:
        print(f"Error: {e.message}")
        return 1
    for path in paths:
        print(path)
    return 0


def _repo_diff(ctx: CliContext, args: argparse.Namespace, repos: RepoService) -> int:
    name = require_repo(args.name)
    branch = args.branch or ctx.settings.default_branch
    print(f"Comparing local files with remote branch '{branch}'...")
    missing = repos.missing_locally(name, branch, root=ctx.cwd)
    print("Files existing on remote but missing locally:")
    for path in missing:
        print(path)
    return 0


def _repo_pages(ctx: CliContext, args: argparse.Namespace, repos: RepoService) -> int:
    name = require_repo(args.name)
    user = repos.username
    if not args.branch:
        print(f"Disabling GitHub Pages for {user}/{name} ...")
        try:
            repos.disable_pages(name)
        except ApiError as e:
            print(f"Failed to disable Pages: {e.message}")
            return 1
        print("GitHub Pages disabled.")
        return 0

    print(f"Enabling GitHub Pages for {user}/{name} (branch: {args.branch}, path: {args.path})...")
    url = repos.enable_pages(name, branch=args.branch, path=args.path)
    print(f"GitHub Pages published: {url}")
    return 0


_REPO_HANDLERS: dict[str, Callable[[CliContext, argparse.Namespace, RepoService], int]] = {
    "list": _repo_list,
    "create": _repo_create,
    "delete": _repo_delete,
    "public": _repo_visibility,
    "private": _repo_visibility,
    "rename": _repo_rename,
    "push": _repo_push,
    "tree": _repo_tree,
    "diff": _repo_diff,
    "pages": _repo_pages,
}


def handle_repo(ctx: CliContext, args: argparse.Namespace) -> int:
    handler = _REPO_HANDLERS.get(args.subcommand or "")
    if handler is None:
        print(USAGE)
        return 1

    username, github = ctx.authenticated_client()
    try:
        repos = RepoService(
            github=github, username=username, default_branch=ctx.settings.default_branch
        )
        return handler(ctx, args, repos)
    finally:
        github.close()


# gist


def handle_gist(ctx: CliContext, args: argparse.Namespace) -> int:
    if args.subcommand not in {"list", "public", "secret", "delete"}:
        print(USAGE)
        return 1

    username, github = ctx.authenticated_client()
    try:
        gists = GistService(github=github)

        if args.subcommand == "list":
            print(f"{ctx.settings.gist_web_url}/{username}/")
            for summary in gists.list_gists():
                print(f"{summary.id} [{summary.visibility}] {summary.display_date()}")
            return 0

        if args.subcommand == "delete":
            if not args.gist_id:
                raise UsageError("Usage: gh-mini -u USER gist delete -i GIST_ID")
            print(f"Deleting gist {args.gist_id}...")
            if not args.yes and not ctx.confirm("Are you sure you want to delete?"):
                print("Cancelled.")
                return 0
            gists.delete(args.gist_id)
            print("Deleted.")
            return 0

        files: list[Path] = args.files
        if not files:
            print("Collecting tracked files for gist...")
            files = [ctx.cwd / p for p in ctx.git.ls_files(cwd=ctx.cwd)]
            if not files:
                print("No tracked files found.")
                return 1

        print(f"Updating gist {args.gist_id}..." if args.gist_id else "Uploading new gist...")
        result = gists.upload(
            files,
            public=args.subcommand == "public",
            description=args.description,
            gist_id=args.gist_id,
        )
        print(f"{'Updated' if result.updated else 'Created'} gist: {result.url}")
        return 0
    finally:
        github.close()


# account


def handle_noreply(ctx: CliContext, args: argparse.Namespace) -> int:
    _, github = ctx.authenticated_client()
    try:
        print("Getting noreply email...")
        account = AccountService(github=github, settings_url=ctx.settings.emails_settings_url)
        email = account.use_noreply_email()
        print(f"Setting public email to noreply: {email}")
        print("Done.")
        return 0
    finally:
        github.close()


def handle_status(ctx: CliContext, args: argparse.Namespace) -> int:
    users = ctx.resolver.known_users()
    if not users:
        print(f"No stored credentials found in {ctx.settings.credentials_dir}")
        return 0
    statuses = check_all_statuses(users, token_for=ctx.resolver.lookup, client_factory=ctx.client)
    for status in statuses:
        print(status)
    return 0


# local git


def handle_iam(ctx: CliContext, args: argparse.Namespace) -> int:
    user = args.iam_user
    switched = switch_identity(
        user,
        repo_dir=ctx.cwd,
        credentials_file=ctx.settings.credentials_file(user),
        git=ctx.git,
    )
    for warning in switched.warnings:
        print(warning)
    print(f"Switched git identity to {switched.user}")
    return 0


def handle_release(ctx: CliContext, args: argparse.Namespace) -> int:
    name = require_repo(args.name)
    # Resolve (and store if needed) the token so the push can authenticate.
    ctx.resolver.resolve(ctx.username)
    assert ctx.username is not None

    publisher = ReleasePublisher(
        git=ctx.git,
        username=ctx.username,
        web_url=ctx.settings.github_web_url,
        branch=ctx.settings.default_branch,
        release_date=ctx.settings.release_date,
        credentials_file=ctx.settings.credentials_file(ctx.username),
    )
    print(f"Releasing current repo to {publisher.repository_url(name)} (reset history)...")
    url = publisher.release(name, cwd=ctx.cwd)
    print(f"Released successfully to {url}")
    return 0


_HANDLERS: dict[str, Callable[[CliContext, argparse.Namespace], int]] = {
    "repo": handle_repo,
    "gist": handle_gist,
    "noreply": handle_noreply,
    "iam": handle_iam,
    "status": handle_status,
    "release": handle_release,
}


def main(
    argv: list[str] | None = None,
    *,
    token_provider: TokenProvider | None = None,
    confirm: Callable[[str], bool] | None = None,
    git: GitRunner | None = None,
    cwd: Path | None = None,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = CliSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your environment / .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(args.log_level or settings.log_level)

    handler = _HANDLERS.get(args.action or "")
    if handler is None:
        print(USAGE)
        return 1

    if token_provider is None:
        token_provider = static_token_provider(settings.token) if settings.token else prompt_for_token

    ctx = CliContext(
        settings=settings,
        resolver=CredentialResolver(
            settings.credentials_dir,
            host=settings.credentials_host,
            token_provider=token_provider,
        ),
        username=args.username,
        git=git or GitRunner(),
        cwd=cwd or Path.cwd(),
        confirm=confirm or confirm_prompt,
    )

    try:
        return handler(ctx, args)

    except ApiError as e:
        logger.warning("API call failed", extra={"status": e.status_code, "error": e.message})
        print(f"Failed: {e.message}")
        return 1

    except GhMiniError as e:
        logger.warning(str(e), extra={"action": args.action})
        print(str(e))
        return 1

    except requests.RequestException:
        logger.exception("Network error")
        print("Failed: network error (see logs)")
        return 1

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
