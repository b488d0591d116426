import logging
import os
import shutil
from pathlib import Path
from typing import Dict, Optional

from iconsync.cancellation import CancellationToken, ensure_token
from iconsync.utils import clear_directory, files_by_extension

log = logging.getLogger(__name__)


def sync_assets(
    upstream_icons_dir: Path,
    resource_dir: Path,
    extension: str = "svg",
    cancellation: Optional[CancellationToken] = None,
) -> int:
    """Replace the contents of `resource_dir` with the upstream icons.

    Icons are copied flat, by file name. If two upstream subdirectories hold
    icons with the same name, the later one (in sorted path order) wins and
    a warning is logged for each collision.

    Cancellation is checked before every copy; a cancelled sync leaves the
    destination partially replaced.
    """
    cancellation = ensure_token(cancellation)
    os.makedirs(resource_dir, exist_ok=True)
    clear_directory(resource_dir)

    icons = files_by_extension(upstream_icons_dir, extension)
    copied_from: Dict[str, Path] = {}
    collisions = 0
    for icon in icons:
        cancellation.raise_if_cancelled()
        if icon.name in copied_from:
            collisions += 1
            log.warning(
                f"'{icon}' overwrites '{copied_from[icon.name]}', "
                f"both flatten to '{icon.name}'"
            )
        shutil.copyfile(icon, Path(resource_dir) / icon.name)
        copied_from[icon.name] = icon

    log.info(f"Copied {len(icons)} {extension} icons to '{resource_dir}'")
    if collisions:
        log.warning(f"{collisions} icons were overwritten by name collisions")
    return len(icons)
