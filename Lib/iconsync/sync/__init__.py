"""
One sync run: clone the package and upstream repos, compare the upstream
icons against the hash recorded in the package repo and, if they changed,
copy the icons in, publish a new package and record the new hash.
"""
from __future__ import annotations

import enum
import logging
from contextlib import ExitStack
from pathlib import Path
from typing import Optional

from iconsync.cancellation import CancellationToken, ensure_token
from iconsync.config import SyncConfig
from iconsync.sync.assets import sync_assets
from iconsync.sync.build import PackageBuilder
from iconsync.sync.detect import ChangeCheck, check_for_changes
from iconsync.sync.git import clone_to_temp_directory
from iconsync.sync.state import commit_hash
from iconsync.utils import hash_directory

log = logging.getLogger("iconsync.sync")


class SyncResult(enum.Enum):
    UP_TO_DATE = "up-to-date"
    BUILD_FAILED = "build-failed"
    PUBLISHED = "published"


class SyncRunner:
    def __init__(
        self,
        config: Optional[SyncConfig] = None,
        cancellation: Optional[CancellationToken] = None,
        toolchain=None,
        keep_workdirs: bool = False,
    ):
        self.config = config or SyncConfig()
        self.cancellation = ensure_token(cancellation)
        self.builder = PackageBuilder(toolchain, self.cancellation)
        self.keep_workdirs = keep_workdirs

    def process(self) -> SyncResult:
        with ExitStack() as stack:
            package_dir = clone_to_temp_directory(
                self.config.repo_url,
                stack,
                self.cancellation,
                branch=self.config.branch,
                keep=self.keep_workdirs,
            )
            upstream_dir = clone_to_temp_directory(
                self.config.upstream_repo_url,
                stack,
                self.cancellation,
                keep=self.keep_workdirs,
            )
            return self.process_directories(package_dir, upstream_dir)

    def process_directories(self, package_dir: Path, upstream_dir: Path) -> SyncResult:
        """Run everything after cloning against two existing working copies."""
        icons_dir = upstream_dir / self.config.upstream_icons_dir
        resource_dir = package_dir / self.config.resource_dir

        check = check_for_changes(package_dir, icons_dir, self.config.override_hash)
        if not check.needs_update:
            return SyncResult.UP_TO_DATE

        if not self.build_pack_and_push(package_dir, resource_dir, icons_dir):
            return SyncResult.BUILD_FAILED

        self.save_hash(package_dir, icons_dir, check)
        return SyncResult.PUBLISHED

    def build_pack_and_push(
        self, package_dir: Path, resource_dir: Path, icons_dir: Path
    ) -> bool:
        sync_assets(
            icons_dir, resource_dir, self.config.icon_extension, self.cancellation
        )
        return self.builder.build_pack_and_publish(
            self.config.project_file(package_dir),
            package_dir,
            self.config.library,
            self.config.nuget_source,
        )

    def save_hash(self, package_dir: Path, icons_dir: Path, check: ChangeCheck):
        new_hash = check.new_hash
        if new_hash is None:
            # No marker existed, so detection never hashed the icons.
            new_hash = hash_directory(icons_dir)
        commit_hash(
            package_dir,
            new_hash,
            self.config.repo_url,
            self.config.branch,
            self.cancellation,
        )


def run_sync(config: Optional[SyncConfig] = None, **kwargs) -> SyncResult:
    result = SyncRunner(config, **kwargs).process()
    log.info(f"Sync finished: {result.value}")
    return result
