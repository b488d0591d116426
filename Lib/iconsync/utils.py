from __future__ import annotations

import hashlib
import os
import shutil
from pathlib import Path
from typing import List, Optional, Union


class MissingEnvironmentVariable(KeyError):
    """A required environment variable is not set."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self):
        return f"Required environment variable '{self.name}' is not set"


def get_env_strict(name: str) -> str:
    """Return the value of an environment variable, failing if it is unset
    or empty."""
    value = os.environ.get(name)
    if not value:
        raise MissingEnvironmentVariable(name)
    return value


def try_read_text(path: Union[str, Path]) -> Optional[str]:
    """Read a text file, returning None if it does not exist."""
    try:
        with open(path, "r", encoding="utf-8") as doc:
            return doc.read()
    except FileNotFoundError:
        return None


def delete_if_exists(path: Union[str, Path]):
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


def clear_directory(path: Union[str, Path]):
    """Remove everything inside `path`, keeping the directory itself."""
    for entry in Path(path).iterdir():
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()


def files_by_extension(path: Union[str, Path], extension: str) -> List[Path]:
    """Recursively list files under `path` with the given extension.

    The extension is matched case-insensitively and may be given with or
    without its leading dot. Results are sorted so callers see a stable order.
    """
    suffix = "." + extension.lstrip(".").lower()
    res = []
    for dirpath, _, filenames in os.walk(path):
        for filename in filenames:
            if filename.lower().endswith(suffix):
                res.append(Path(dirpath) / filename)
    return sorted(res)


def _file_digest(path: Path) -> bytes:
    hasher = hashlib.sha3_256()
    with open(path, "rb") as f:
        while chunk := f.read(65536):
            hasher.update(chunk)
    return hasher.digest()


def hash_directory(path: Union[str, Path]) -> str:
    """SHA3-256 over every file below `path`.

    Files are visited in sorted order of their POSIX relative path and each
    contributes its relative path and content digest, so the result only
    changes when a file is added, removed, renamed or edited.
    """
    root = Path(path)
    if not root.is_dir():
        raise FileNotFoundError(f"Cannot hash '{root}', it is not a directory")
    files = []
    for dirpath, _, filenames in os.walk(root):
        for filename in filenames:
            fp = Path(dirpath) / filename
            if fp.is_file():
                files.append((fp.relative_to(root).as_posix(), fp))
    hasher = hashlib.sha3_256()
    for rel_path, fp in sorted(files):
        hasher.update(rel_path.encode("utf-8"))
        hasher.update(b"\0")
        hasher.update(_file_digest(fp))
    return hasher.hexdigest().upper()


def redact(text: str, *secrets: Optional[str]) -> str:
    for secret in secrets:
        if secret:
            text = text.replace(secret, "***")
    return text
