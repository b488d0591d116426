import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from iconsync.constants import HASH_FILE
from iconsync.utils import hash_directory, try_read_text

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeCheck:
    needs_update: bool
    # Marker stored in the package repo, None if it was missing.
    old_hash: Optional[str] = None
    # Hash of the upstream icons, only computed when a marker exists.
    new_hash: Optional[str] = None


def read_hash_marker(package_repo_dir: Path) -> Optional[str]:
    text = try_read_text(Path(package_repo_dir) / HASH_FILE)
    if text is None:
        return None
    return text.strip()


def check_for_changes(
    package_repo_dir: Path, upstream_icons_dir: Path, override_hash: bool = False
) -> ChangeCheck:
    """Decide whether the upstream icons differ from the last published set.

    A missing marker always means an update, without hashing anything, so a
    first run (or a lost marker) republishes unconditionally.
    """
    old_hash = read_hash_marker(package_repo_dir)
    if old_hash is None:
        log.debug("Could not read hash from repository, proceeding to update...")
        return ChangeCheck(needs_update=True)

    new_hash = hash_directory(upstream_icons_dir)
    if old_hash == new_hash:
        if not override_hash:
            log.info("Hashes are equal, no need to update, exiting...")
            return ChangeCheck(False, old_hash, new_hash)
        log.warning("Hashes are equal but override is set, so continuing...")
    else:
        log.info(f"Upstream hash changed from {old_hash} to {new_hash}")
    return ChangeCheck(True, old_hash, new_hash)
