#!/usr/bin/env python3
"""
iconsync:

Publish a new icon package whenever the upstream icon set changes.

Clones the package repository and the upstream icon repository, compares
the upstream icons against the hash stored in the package repository's
hash.txt and, if they differ, copies the icons into the package, builds,
packs and publishes it, then commits and pushes the new hash.

Usage:

$ BUILD_VERSION=1.2.3 NUGET__TOKEN=... GIT__NAME=... GIT__EMAIL=... \\
  GH__USERNAME=... GH__TOKEN=... iconsync

# Settings can be kept in a YAML file
$ iconsync --config iconsync.yaml

The run exits 0 when nothing changed, when a package was published and
when the build failed (the next scheduled run retries).
"""
import argparse
import sys

from iconsync.cancellation import CancellationToken, Cancelled
from iconsync.config import SyncConfig
from iconsync.logging import setup_logging
from iconsync.sync import run_sync


def main(args=None):
    parser = argparse.ArgumentParser(
        description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("--config", help="YAML file with sync settings")
    parser.add_argument("--library", help="Name of the packaged library")
    parser.add_argument(
        "-f",
        "--force",
        action="store_const",
        const=True,
        dest="override_hash",
        help="Publish even if the upstream icons are unchanged",
    )
    parser.add_argument(
        "--keep-workdirs",
        action="store_true",
        help="Don't delete the cloned repositories when the run ends",
    )
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"),
        default="INFO",
    )
    parser.add_argument(
        "--show-tracebacks",
        action="store_true",
        help=(
            "By default, exceptions will only print out error messages. "
            "Tracebacks won't be included."
        ),
    )
    args = parser.parse_args(args)
    log = setup_logging(args, __name__)

    config = SyncConfig.from_yaml(args.config) if args.config else SyncConfig()
    config = config.with_overrides(
        library=args.library, override_hash=args.override_hash
    )

    cancellation = CancellationToken()
    cancellation.install_signal_handlers()
    try:
        run_sync(config, cancellation=cancellation, keep_workdirs=args.keep_workdirs)
    except Cancelled as e:
        log.warning(e)
        sys.exit(130)


if __name__ == "__main__":
    main()
