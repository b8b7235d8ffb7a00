"""
Git publishing for the dashboard repo.

Stages the dataset, commits and pushes. Never raises: an empty commit is a
no-op and every other failure comes back as a warning in PublishResult so
locally saved data is never rolled back.
"""
from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

_NOTHING_TO_COMMIT = ("nothing to commit", "no changes added to commit")


@dataclass
class PublishResult:
    committed: bool = False
    pushed: bool = False
    warning: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.warning is None


class GitError(Exception):
    def __init__(self, args: list[str], output: str):
        super().__init__(f"git {' '.join(args)} failed: {output}")
        self.output = output


def _git(repo_dir: Path, *args: str, timeout: int = 60) -> str:
    """Run a git command in repo_dir. Returns stdout, raises GitError on failure."""
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=str(repo_dir),
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        raise GitError(list(args), str(exc)) from exc
    if result.returncode != 0:
        output = (result.stderr.strip() + "\n" + result.stdout.strip()).strip()
        raise GitError(list(args), output)
    return result.stdout


def is_git_repo(repo_dir: Path) -> bool:
    try:
        return _git(repo_dir, "rev-parse", "--is-inside-work-tree", timeout=10).strip() == "true"
    except GitError:
        return False


def publish(
    repo_dir: Path,
    files: Iterable[Path],
    message: str,
    remote: Optional[str] = None,
    branch: Optional[str] = None,
) -> PublishResult:
    """git add <files> && git commit -m <message> && git push"""
    result = PublishResult()
    paths = [str(f) for f in files]

    try:
        _git(repo_dir, "add", "--", *paths)
    except GitError as exc:
        result.warning = f"Git add failed: {exc.output[:300]}"
        logger.warning(result.warning)
        return result

    try:
        _git(repo_dir, "commit", "-m", message)
        result.committed = True
    except GitError as exc:
        if any(marker in exc.output for marker in _NOTHING_TO_COMMIT):
            logger.info("No changes to commit.")
            return result
        result.warning = f"Git commit failed: {exc.output[:300]}"
        logger.warning(result.warning)
        return result

    push_args = ["push"]
    if remote:
        push_args.append(remote)
        if branch:
            push_args.append(branch)
    try:
        _git(repo_dir, *push_args, timeout=120)
        result.pushed = True
        logger.info(f"Pushed: {message}")
    except GitError as exc:
        result.warning = f"Git push failed: {exc.output[:300]}"
        logger.warning(result.warning)

    return result
