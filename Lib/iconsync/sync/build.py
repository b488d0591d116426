from __future__ import annotations

import logging
import selectors
import subprocess
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from iconsync.cancellation import CancellationToken, Cancelled, ensure_token
from iconsync.constants import (
    BUILD_CONFIGURATION,
    ENV_BUILD_VERSION,
    ENV_NUGET_TOKEN,
    NUPKG_NAME,
)
from iconsync.utils import get_env_strict, redact

log = logging.getLogger(__name__)


class ToolchainError(Exception):
    """A package toolchain command failed."""


def run_command_with_callback(
    cmd: Sequence[str],
    callback: Callable[[bytes], None],
    cancellation: Optional[CancellationToken] = None,
    secrets: Sequence[str] = (),
    poll_interval: float = 0.5,
) -> int:
    """Run `cmd`, feeding each stdout line to `callback`.

    stderr is collected and logged if the command fails. The process is
    terminated and Cancelled raised as soon as cancellation is requested.
    """
    cancellation = ensure_token(cancellation)
    cancellation.raise_if_cancelled()
    log.debug("Running %s", redact(" ".join(str(c) for c in cmd), *secrets))
    process = subprocess.Popen(
        [str(c) for c in cmd],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )
    sel = selectors.DefaultSelector()
    sel.register(process.stdout, selectors.EVENT_READ)
    sel.register(process.stderr, selectors.EVENT_READ)
    stderrlines: List[bytes] = []
    open_streams = 2
    try:
        while open_streams:
            if cancellation.cancelled:
                process.terminate()
                process.wait()
                raise Cancelled(f"Cancelled while running '{cmd[0]}'")
            for key, _val1 in sel.select(timeout=poll_interval):
                line = key.fileobj.readline()
                if not line:
                    sel.unregister(key.fileobj)
                    open_streams -= 1
                    continue
                if key.fileobj is process.stdout:
                    callback(line)
                else:
                    stderrlines.append(line)
    except BaseException:
        if process.poll() is None:
            process.kill()
            process.wait()
        raise
    finally:
        sel.close()
        process.stdout.close()
        process.stderr.close()
    rc = process.wait()
    # A signal can reach the child and us together, the child's exit code
    # then reflects the cancellation, not a tool failure.
    cancellation.raise_if_cancelled()
    if rc != 0:
        for line in stderrlines:
            log.error(redact(line.decode("utf-8", "replace").rstrip(), *secrets))
    return rc


class DotnetToolchain:
    """Drives the `dotnet` CLI. Every method returns True on success."""

    def __init__(self, cancellation: Optional[CancellationToken] = None, dotnet="dotnet"):
        self.cancellation = ensure_token(cancellation)
        self.dotnet = dotnet

    def _run(self, args: List[str], secrets: Sequence[str] = ()) -> bool:
        def log_line(line: bytes):
            log.debug(redact(line.decode("utf-8", "replace").rstrip(), *secrets))

        rc = run_command_with_callback(
            [self.dotnet, *args], log_line, self.cancellation, secrets=secrets
        )
        return rc == 0

    def restore(self, project_file: Path) -> bool:
        return self._run(["restore", str(project_file)])

    def build(self, project_file: Path, configuration: str) -> bool:
        return self._run(
            ["build", str(project_file), "--configuration", configuration, "--no-restore"]
        )

    def pack(
        self, project_file: Path, version: str, configuration: str, output_dir: Path
    ) -> bool:
        return self._run(
            [
                "pack",
                str(project_file),
                "--configuration",
                configuration,
                "--no-build",
                "--no-restore",
                f"-p:PackageVersion={version}",
                "--output",
                str(output_dir),
            ]
        )

    def push(self, package_path: Path, api_key: str, source: str) -> bool:
        return self._run(
            [
                "nuget",
                "push",
                str(package_path),
                "--api-key",
                api_key,
                "--source",
                source,
            ],
            secrets=[api_key],
        )


class PackageBuilder:
    def __init__(self, toolchain=None, cancellation: Optional[CancellationToken] = None):
        self.cancellation = ensure_token(cancellation)
        self.toolchain = toolchain or DotnetToolchain(self.cancellation)

    def build_pack_and_publish(
        self, project_file: Path, output_dir: Path, library: str, source: str
    ) -> bool:
        """Restore, build, pack and publish `project_file`.

        Returns False without raising when the build fails, leaving the run
        to end quietly so the next scheduled invocation tries again. Every
        other failure raises.
        """
        self.cancellation.raise_if_cancelled()
        log.info(f"Restoring '{project_file}'")
        if not self.toolchain.restore(project_file):
            raise ToolchainError(f"Restore of '{project_file}' failed")

        self.cancellation.raise_if_cancelled()
        log.info(f"Building '{project_file}' ({BUILD_CONFIGURATION})")
        if not self.toolchain.build(project_file, BUILD_CONFIGURATION):
            log.error("Build was not successful, exiting...")
            return False

        version = get_env_strict(ENV_BUILD_VERSION)

        self.cancellation.raise_if_cancelled()
        log.info(f"Packing {library} {version}")
        if not self.toolchain.pack(project_file, version, BUILD_CONFIGURATION, output_dir):
            raise ToolchainError(f"Pack of '{project_file}' failed")
        package_path = Path(output_dir) / NUPKG_NAME(library=library, version=version)
        if not package_path.exists():
            raise ToolchainError(f"Expected package '{package_path}' was not created")

        api_key = get_env_strict(ENV_NUGET_TOKEN)

        self.cancellation.raise_if_cancelled()
        log.info(f"Publishing '{package_path.name}' to {source}")
        if not self.toolchain.push(package_path, api_key, source):
            raise ToolchainError(f"Publishing '{package_path.name}' failed")
        return True
