"""Read a file's content as of a git revision."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Union

from .errors import GitSourceError

logger = logging.getLogger(__name__)

GIT_TIMEOUT = 30


def _git(repo: Path, args: List[str]) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(
            ["git", *args],
            cwd=str(repo),
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        raise GitSourceError(f"Could not run git in {repo}: {exc}") from exc


def _repo_relative(repo: Path, path: Union[str, Path]) -> str:
    target = Path(path)
    if target.is_absolute():
        try:
            target = target.resolve().relative_to(repo.resolve())
        except ValueError as exc:
            raise GitSourceError(f"{path} is outside repository {repo}") from exc
    return target.as_posix()


def read_file_at_revision(repo: Union[str, Path], path: Union[str, Path], rev: str = "HEAD") -> str:
    """Content of *path* at *rev*; ``""`` if the file did not exist there.

    Raises:
        GitSourceError: *repo* is not a repository, *rev* is unknown, or git
            could not be executed.
    """
    repo = Path(repo)
    verify = _git(repo, ["rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"])
    if verify.returncode != 0:
        raise GitSourceError(
            f"Unknown revision '{rev}' in {repo}: {verify.stderr.strip() or 'not a commit'}"
        )

    object_name = f"{rev}:./{_repo_relative(repo, path)}"
    if _git(repo, ["cat-file", "-e", object_name]).returncode != 0:
        logger.debug("%s not present at %s, treating as new file", path, rev)
        return ""

    shown = _git(repo, ["show", object_name])
    if shown.returncode != 0:
        raise GitSourceError(f"git show {object_name} failed: {shown.stderr.strip()}")
    return shown.stdout
