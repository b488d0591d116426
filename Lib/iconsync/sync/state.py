import logging
from pathlib import Path
from typing import Optional

from iconsync.cancellation import CancellationToken, ensure_token
from iconsync.sync import git as gitutil
from iconsync.constants import (
    COMMIT_MESSAGE,
    ENV_GH_TOKEN,
    ENV_GH_USERNAME,
    ENV_GIT_EMAIL,
    ENV_GIT_NAME,
    HASH_FILE,
)
from iconsync.utils import delete_if_exists, get_env_strict

log = logging.getLogger(__name__)


def write_hash_marker(package_repo_dir: Path, new_hash: str) -> Path:
    marker = Path(package_repo_dir) / HASH_FILE
    delete_if_exists(marker)
    with open(marker, "w", encoding="utf-8") as doc:
        doc.write(new_hash)
    return marker


def commit_hash(
    package_repo_dir: Path,
    new_hash: str,
    remote_url: str,
    branch: Optional[str] = None,
    cancellation: Optional[CancellationToken] = None,
) -> bool:
    """Record `new_hash` in the package repo, committing and pushing if that
    (or anything else in the working tree) changed. Returns True if pushed."""
    cancellation = ensure_token(cancellation)
    marker = write_hash_marker(package_repo_dir, new_hash)
    gitutil.add_if_not_exists(package_repo_dir, marker)

    if not gitutil.is_repository_dirty(package_repo_dir):
        log.info("There are no changes to commit")
        return False

    log.info("Changes have been detected in the repository, commiting and pushing...")
    name = get_env_strict(ENV_GIT_NAME)
    email = get_env_strict(ENV_GIT_EMAIL)
    username = get_env_strict(ENV_GH_USERNAME)
    token = get_env_strict(ENV_GH_TOKEN)

    cancellation.raise_if_cancelled()
    gitutil.commit(package_repo_dir, COMMIT_MESSAGE, name, email)
    cancellation.raise_if_cancelled()
    gitutil.push(package_repo_dir, remote_url, username, token, branch)
    return True
