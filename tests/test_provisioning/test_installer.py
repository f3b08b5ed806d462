"""Tests for DependencyInstaller."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from provisioning.errors import DependencyInstallError
from provisioning.installer import DependencyInstaller


pytestmark = pytest.mark.unit


def completed(returncode: int = 0, stderr: str = "") -> MagicMock:
    result = MagicMock(spec=subprocess.CompletedProcess)
    result.returncode = returncode
    result.stdout = ""
    result.stderr = stderr
    return result


class TestBuildCommand:
    """Tests for command construction."""

    def test_runtime_dependency(self, project_root: Path):
        installer = DependencyInstaller(project_root)
        assert installer.build_command("npm:svelte") == ["deno", "add", "npm:svelte"]

    def test_dev_dependency(self, project_root: Path):
        installer = DependencyInstaller(project_root)
        assert installer.build_command("npm:vite", dev=True) == ["deno", "add", "-D", "npm:vite"]

    def test_custom_command(self, project_root: Path):
        installer = DependencyInstaller(project_root, command=["pnpm", "add"], dev_flag="--save-dev")
        assert installer.build_command("vite", dev=True) == ["pnpm", "add", "--save-dev", "vite"]


class TestInstall:
    """Tests for sequential installation."""

    def test_runs_one_command_per_dependency_in_order(self, project_root: Path):
        installer = DependencyInstaller(project_root, timeout=30)

        with patch("provisioning.installer.subprocess.run", return_value=completed()) as run:
            installed = installer.install(["npm:a", "npm:b", "npm:c"], dev=True)

        assert installed == ["npm:a", "npm:b", "npm:c"]
        assert [c.args[0] for c in run.call_args_list] == [
            ["deno", "add", "-D", "npm:a"],
            ["deno", "add", "-D", "npm:b"],
            ["deno", "add", "-D", "npm:c"],
        ]
        for c in run.call_args_list:
            assert c.kwargs["cwd"] == project_root
            assert c.kwargs["timeout"] == 30

    def test_stops_at_first_failure(self, project_root: Path):
        installer = DependencyInstaller(project_root)
        results = [completed(), completed(returncode=1, stderr="  no such package \n"), completed()]

        with patch("provisioning.installer.subprocess.run", side_effect=results) as run:
            with pytest.raises(DependencyInstallError) as exc_info:
                installer.install(["npm:a", "npm:missing", "npm:c"])

        assert run.call_count == 2
        error = exc_info.value
        assert error.dependency == "npm:missing"
        assert error.returncode == 1
        assert error.stderr == "no such package"
        assert "npm:missing" in str(error)

    def test_missing_package_manager(self, project_root: Path):
        installer = DependencyInstaller(project_root)

        with patch("provisioning.installer.subprocess.run", side_effect=FileNotFoundError()):
            with pytest.raises(DependencyInstallError, match="deno not found"):
                installer.install(["npm:svelte"])

    def test_timeout(self, project_root: Path):
        installer = DependencyInstaller(project_root, timeout=7)
        error = subprocess.TimeoutExpired(cmd=["deno"], timeout=7)

        with patch("provisioning.installer.subprocess.run", side_effect=error):
            with pytest.raises(DependencyInstallError, match="timed out after 7s"):
                installer.install(["npm:svelte"])

    def test_empty_dependencies(self, project_root: Path):
        installer = DependencyInstaller(project_root)

        with patch("provisioning.installer.subprocess.run") as run:
            assert installer.install([]) == []

        run.assert_not_called()
