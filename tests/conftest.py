"""Shared pytest fixtures for the deno-sv test suite.

Provides reusable fixtures for:
- Building gzip tarballs (including hostile ones) on disk
- A complete template bundle laid out like the published npm package
- A fetcher that serves a local archive instead of hitting the registry
- A recording installer that never runs a package manager
"""

from __future__ import annotations

import io
import shutil
import tarfile
import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from denosv.config import Config
from provisioning.fetcher import BundleReference
from provisioning.installer import DependencyInstaller


# ---------------------------------------------------------------------------
# Template content
# ---------------------------------------------------------------------------

VITE_CONFIG = textwrap.dedent("""\
    import { sveltekit } from "@sveltejs/kit/vite";
    import { defineConfig } from "vite";
    import deno from "@deno/vite-plugin";
    //Vimport { svelteTesting } from "@testing-library/svelte/vite";
    //Timport tailwindcss from "@tailwindcss/vite";

    export default defineConfig({
      plugins: [
        deno(),
        sveltekit(),
    //T    tailwindcss(),
      ],
    //V  test: {
    //V    workspace: [{
    //V      extends: "./vite.config.ts",
    //V      plugins: [svelteTesting()],
    //V      test: {
    //V        name: "client",
    //V        environment: "jsdom",
    //V        clearMocks: true,
    //V        include: [
    //V          "tests/**/*.svelte.test.ts",
    //V          "tests/**/*.test.ts",
    //V        ],
    //V        setupFiles: ["./tests/setup.ts"],
    //V      },
    //V    }],
    //V  },
    });
""")

LAYOUT = textwrap.dedent("""\
    <script>
    //T  import "../app.css";
      let { children } = $props();
    </script>

    {@render children()}
""")

TEMPLATE_FILES: dict[str, str] = {
    "deno.json": '{\n  "tasks": {\n    "dev": "deno run -A npm:vite dev"\n  }\n}\n',
    "vite.config.ts": VITE_CONFIG,
    "svelte.config.js": 'import adapter from "@sveltejs/adapter-auto";\n\nexport default { kit: { adapter: adapter() } };\n',
    "gitignore": "node_modules\n.svelte-kit\n",
    "src/app.html": "<!doctype html>\n<html>%sveltekit.head%</html>\n",
    "src/app.d.ts": "declare global {}\nexport {};\n",
    "src/routes/+layout.svelte": LAYOUT,
    "src/routes/+page.svelte": "<h1>Welcome to SvelteKit</h1>\n",
    "static/favicon.png": "\x89PNG",
    "vitest/setup.ts": 'import "@testing-library/jest-dom/vitest";\n',
    "vitest/page.svelte.test.ts": 'import { describe, it } from "vitest";\n\ndescribe("page", () => { it("renders", () => {}); });\n',
    "tailwind/app.css": '@import "tailwindcss";\n',
}


# ---------------------------------------------------------------------------
# Tarball helpers
# ---------------------------------------------------------------------------

def write_tarball(path: Path, entries: dict[str, bytes | None]) -> Path:
    """Write a ``.tgz`` with the given entries.

    A ``None`` value creates a directory entry. Names are stored verbatim,
    so hostile names such as ``../escape.sh`` can be produced.
    """
    with tarfile.open(path, "w:gz") as tar:
        for name, data in entries.items():
            info = tarfile.TarInfo(name)
            if data is None:
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tar.addfile(info)
            else:
                info.size = len(data)
                info.mode = 0o644
                tar.addfile(info, io.BytesIO(data))
    return path


@pytest.fixture
def make_tarball(tmp_path: Path) -> Callable[..., Path]:
    """Factory building tarballs under ``tmp_path/archives``."""
    archives = tmp_path / "archives"
    archives.mkdir()

    def _make(entries: dict[str, bytes | None], name: str = "bundle.tgz") -> Path:
        return write_tarball(archives / name, entries)

    return _make


@pytest.fixture
def template_entries() -> dict[str, bytes | None]:
    """Archive entries of the template bundle, npm ``package/`` layout."""
    entries: dict[str, bytes | None] = {
        "package/": None,
        "package/package.json": b'{"name": "@deno-sv/templates", "version": "0.1.0"}\n',
        "package/templates/": None,
    }
    for relative, content in TEMPLATE_FILES.items():
        entries[f"package/templates/{relative}"] = content.encode("latin-1")
    return entries


@pytest.fixture
def bundle_archive(make_tarball, template_entries) -> Path:
    """Complete template bundle tarball."""
    return make_tarball(template_entries)


@pytest.fixture
def template_root(tmp_path: Path) -> Path:
    """Extracted template tree (no archive involved)."""
    root = tmp_path / "templates"
    for relative, content in TEMPLATE_FILES.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content.encode("latin-1"))
    return root


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Destination project directory."""
    root = tmp_path / "my-app"
    root.mkdir()
    return root


# ---------------------------------------------------------------------------
# Collaborator fakes
# ---------------------------------------------------------------------------

class LocalFetcher:
    """Serves a local archive in place of the registry."""

    def __init__(self, archive: Path) -> None:
        self.archive = archive
        self.calls: list[tuple[BundleReference, Path]] = []

    def fetch(self, bundle: BundleReference, destination: Path) -> Path:
        self.calls.append((bundle, destination))
        shutil.copyfile(self.archive, destination)
        return destination


class RecordingInstaller(DependencyInstaller):
    """Records install commands instead of running them."""

    def __init__(self, project_root: Path, fail_on: str | None = None) -> None:
        super().__init__(project_root)
        self.fail_on = fail_on
        self.commands: list[list[str]] = []

    def install(self, dependencies, dev: bool = False) -> list[str]:
        from provisioning.errors import DependencyInstallError

        installed = []
        for dependency in dependencies:
            if dependency == self.fail_on:
                raise DependencyInstallError(dependency, returncode=1, stderr="boom")
            self.commands.append(self.build_command(dependency, dev=dev))
            installed.append(dependency)
        return installed


@pytest.fixture
def config() -> Config:
    """Default configuration."""
    return Config()


@pytest.fixture
def local_fetcher(bundle_archive: Path) -> LocalFetcher:
    """Fetcher serving the complete template bundle."""
    return LocalFetcher(bundle_archive)


class InstallerFactory:
    """Builds recording installers and remembers them."""

    def __init__(self) -> None:
        self.fail_on: str | None = None
        self.installers: list[RecordingInstaller] = []

    def __call__(self, project_root: Path) -> RecordingInstaller:
        installer = RecordingInstaller(project_root, fail_on=self.fail_on)
        self.installers.append(installer)
        return installer

    @property
    def commands(self) -> list[list[str]]:
        return [cmd for installer in self.installers for cmd in installer.commands]


@pytest.fixture
def installer_factory() -> InstallerFactory:
    """Installer factory for ``ProvisioningRunner``."""
    return InstallerFactory()
