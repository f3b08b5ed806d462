"""Dependency installation through an external package manager.

Each dependency is installed with its own command, one after another.
Install commands share a lockfile, so they are never run concurrently.
"""

import logging
import subprocess
from collections.abc import Iterable, Sequence
from pathlib import Path

from .errors import DependencyInstallError

logger = logging.getLogger(__name__)


DEFAULT_INSTALL_COMMAND = ("deno", "add")


class DependencyInstaller:
    """Runs ``<command> [dev_flag] <dependency>`` once per dependency."""

    def __init__(
        self,
        project_root: Path,
        command: Sequence[str] = DEFAULT_INSTALL_COMMAND,
        dev_flag: str = "-D",
        timeout: int = 300,
    ) -> None:
        """Initialize installer.

        Args:
            project_root: Working directory for the package manager
            command: Package manager command prefix
            dev_flag: Flag marking a development dependency
            timeout: Per-dependency timeout in seconds
        """
        self.project_root = Path(project_root)
        self.command = list(command)
        self.dev_flag = dev_flag
        self.timeout = timeout

    def build_command(self, dependency: str, dev: bool = False) -> list[str]:
        """Command line used for one dependency."""
        cmd = list(self.command)
        if dev and self.dev_flag:
            cmd.append(self.dev_flag)
        cmd.append(dependency)
        return cmd

    def install(self, dependencies: Iterable[str], dev: bool = False) -> list[str]:
        """Install dependencies in order, stopping at the first failure.

        Returns:
            Dependencies installed

        Raises:
            DependencyInstallError: If a command fails, times out, or the
                package manager is not found.
        """
        installed: list[str] = []
        for dependency in dependencies:
            cmd = self.build_command(dependency, dev=dev)
            logger.info("Installing %s", dependency)
            try:
                result = subprocess.run(
                    cmd,
                    cwd=self.project_root,
                    capture_output=True,
                    text=True,
                    timeout=self.timeout,
                )
            except FileNotFoundError as e:
                raise DependencyInstallError(dependency, stderr=f"{cmd[0]} not found") from e
            except subprocess.TimeoutExpired as e:
                raise DependencyInstallError(
                    dependency, stderr=f"timed out after {self.timeout}s"
                ) from e

            if result.returncode != 0:
                raise DependencyInstallError(
                    dependency,
                    returncode=result.returncode,
                    stderr=(result.stderr or "").strip(),
                )
            installed.append(dependency)
        return installed
