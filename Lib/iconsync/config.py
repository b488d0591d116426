"""Non-secret settings for a sync run.

Credentials and the build version are never part of the config, they are
read from strict environment variables at the point they are needed.
"""
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional

import yaml

from iconsync.constants import (
    DEFAULT_LIBRARY,
    LUCIDE_ICONS_URL,
    NUGET_SOURCE,
    PACKAGE_REPO_URL,
)


@dataclass(frozen=True)
class SyncConfig:
    library: str = DEFAULT_LIBRARY
    # None means https://github.com/soenneker/<library lower-cased>
    package_repo_url: Optional[str] = None
    upstream_repo_url: str = LUCIDE_ICONS_URL
    upstream_icons_dir: str = "icons"
    resource_dir: str = "src/Resources"
    icon_extension: str = "svg"
    # Publish even when the upstream hash matches the stored marker.
    override_hash: bool = False
    nuget_source: str = NUGET_SOURCE
    # Branch to push the marker commit to, None pushes the current branch.
    branch: Optional[str] = None

    @property
    def repo_url(self) -> str:
        if self.package_repo_url:
            return self.package_repo_url
        return PACKAGE_REPO_URL(library_lower=self.library.lower())

    def project_file(self, package_dir: Path) -> Path:
        return package_dir / "src" / f"{self.library}.csproj"

    @classmethod
    def from_dict(cls, data) -> "SyncConfig":
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError("Config must be a mapping of settings")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
        if "override_hash" in data and not isinstance(data["override_hash"], bool):
            raise ValueError("'override_hash' must be true or false")
        return cls(**data)

    @classmethod
    def from_yaml(cls, path) -> "SyncConfig":
        with open(path, "r", encoding="utf-8") as doc:
            return cls.from_dict(yaml.safe_load(doc))

    def with_overrides(self, **kwargs) -> "SyncConfig":
        """Return a copy with every non-None keyword applied."""
        return replace(self, **{k: v for k, v in kwargs.items() if v is not None})
