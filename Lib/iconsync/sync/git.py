# Thin wrappers over GitPython for the handful of source-control
# operations a sync run needs: clone, stage, dirty check, commit and push.
from __future__ import annotations

import logging
import tempfile
from contextlib import ExitStack
from pathlib import Path
from typing import Optional, Union
from urllib.parse import quote, urlsplit, urlunsplit

import git

from iconsync.cancellation import CancellationToken, ensure_token
from iconsync.utils import redact

log = logging.getLogger(__name__)


class GitRemoteProgress(git.RemoteProgress):
    OP_CODES = [
        "BEGIN",
        "CHECKING_OUT",
        "COMPRESSING",
        "COUNTING",
        "END",
        "FINDING_SOURCES",
        "RECEIVING",
        "RESOLVING",
        "WRITING",
    ]
    OP_CODE_MAP = {
        getattr(git.RemoteProgress, _op_code): _op_code for _op_code in OP_CODES
    }

    def __init__(self, name) -> None:
        super().__init__()
        self.name = name
        self.curr_op = None

    @classmethod
    def get_curr_op(cls, op_code: int) -> str:
        """Get OP name from OP code."""
        # Remove BEGIN- and END-flag and get op name
        op_code_masked = op_code & cls.OP_MASK
        return cls.OP_CODE_MAP.get(op_code_masked, "?").title()

    def update(
        self,
        op_code: int,
        cur_count: Union[str, float],
        max_count: Union[str, float, None] = None,
        message: Optional[str] = "",
    ) -> None:
        if op_code & self.BEGIN:
            self.curr_op = self.get_curr_op(op_code)
            log.debug("%s %s", self.curr_op, self.name)
        elif op_code & self.END:
            log.debug("%s %s done (%s)", self.curr_op, self.name, cur_count)


def _repo_name(url: str) -> str:
    # https://github.com/lucide-icons/lucide.git -> lucide
    name = url.rstrip("/").rsplit("/", 1)[-1]
    return name[: -len(".git")] if name.endswith(".git") else name


def clone_to_temp_directory(
    url: str,
    stack: ExitStack,
    cancellation: Optional[CancellationToken] = None,
    branch: Optional[str] = None,
    keep: bool = False,
) -> Path:
    """Clone `url` into a fresh temporary directory and return its path.

    The directory is removed when `stack` closes unless `keep` is set.
    """
    cancellation = ensure_token(cancellation)
    cancellation.raise_if_cancelled()
    name = _repo_name(url)
    if keep:
        tmp = tempfile.mkdtemp(prefix=f"iconsync-{name}-")
        log.info(f"Keeping working copy of '{name}' at '{tmp}'")
    else:
        tmp = stack.enter_context(tempfile.TemporaryDirectory(prefix=f"iconsync-{name}-"))
    target = Path(tmp) / name
    log.info(f"Cloning '{url}'")
    kwargs = {"branch": branch} if branch else {}
    try:
        git.Repo.clone_from(
            url=url,
            to_path=target,
            progress=GitRemoteProgress(name),
            **kwargs,
        )
    except git.GitCommandError:
        # git dies from the same SIGINT that cancels the run.
        cancellation.raise_if_cancelled()
        raise
    cancellation.raise_if_cancelled()
    return target


def add_if_not_exists(repo_dir: Union[str, Path], file_path: Union[str, Path]) -> bool:
    """Stage `file_path` if git does not track it yet. Returns True if staged."""
    repo = git.Repo(repo_dir)
    rel_path = Path(file_path).resolve().relative_to(Path(repo.working_tree_dir).resolve())
    rel_path = rel_path.as_posix()
    if rel_path not in repo.untracked_files:
        return False
    repo.index.add([rel_path])
    log.debug(f"Staged '{rel_path}'")
    return True


def is_repository_dirty(repo_dir: Union[str, Path]) -> bool:
    return git.Repo(repo_dir).is_dirty(untracked_files=True)


def commit(repo_dir: Union[str, Path], message: str, name: str, email: str) -> str:
    """Stage every change (honoring .gitignore) and commit it. Returns the sha."""
    repo = git.Repo(repo_dir)
    repo.git.add(A=True)
    actor = git.Actor(name, email)
    new_commit = repo.index.commit(message, author=actor, committer=actor)
    log.info(f"Committed {new_commit.hexsha[:7]} '{message}'")
    return new_commit.hexsha


def authenticated_url(url: str, username: str, token: str) -> str:
    """https://github.com/o/r -> https://<username>:<token>@github.com/o/r

    Local paths and ssh remotes are returned unchanged, the token only
    applies to HTTP(S).
    """
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https"):
        return url
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    netloc = f"{quote(username, safe='')}:{quote(token, safe='')}@{host}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def push(
    repo_dir: Union[str, Path],
    url: str,
    username: str,
    token: str,
    branch: Optional[str] = None,
):
    """Push HEAD to `branch` (default: the current branch) on `url`."""
    repo = git.Repo(repo_dir)
    if branch is None:
        branch = repo.active_branch.name
    ref_spec = f"HEAD:refs/heads/{branch}"
    log.info(f"Pushing '{branch}' to '{url}'")
    try:
        repo.git.push(authenticated_url(url, username, token), ref_spec)
    except git.GitCommandError as e:
        # The failing command line and stderr both echo the remote URL.
        secrets = (token, quote(token, safe=""))
        parts = e.command if isinstance(e.command, (list, tuple)) else [e.command]
        command = [redact(str(part), *secrets) for part in parts]
        error = git.GitCommandError(command, e.status)
        # stderr/stdout are already formatted, carry them over as they are.
        error.stderr = redact(e.stderr, *secrets)
        error.stdout = redact(e.stdout, *secrets)
        raise error from None
