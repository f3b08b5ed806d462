"""Provisioning runner for setting up a project from the template bundle."""

import logging
import tempfile
import uuid
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console

from denosv.config import Config
from provisioning.activator import TextActivator
from provisioning.errors import ManifestInconsistencyError
from provisioning.extractor import extract_archive
from provisioning.fetcher import ArchiveFetcher
from provisioning.fixups import run_fixups
from provisioning.installer import DependencyInstaller
from provisioning.selector import FeatureFileSelector
from schemas.provision_state import FeatureSet, ProvisionState, Stage

from .state_machine import StateMachine

logger = logging.getLogger(__name__)

InstallerFactory = Callable[[Path], DependencyInstaller]


class ProvisioningRunner:
    """Orchestrates one provisioning run.

    Stages run strictly in order:
    FETCHING -> EXTRACTING -> SELECTING -> ACTIVATING -> FINALIZING -> DONE.
    The workspace holding the downloaded and extracted bundle exists only for
    the duration of the run and is removed whether the run succeeds or fails.
    Errors are recorded on the state and re-raised to the caller.
    """

    def __init__(
        self,
        config: Config,
        fetcher: Optional[ArchiveFetcher] = None,
        installer_factory: Optional[InstallerFactory] = None,
        console: Optional[Console] = None,
    ) -> None:
        """Initialize runner.

        Args:
            config: Loaded configuration
            fetcher: Archive fetcher (default: built from config)
            installer_factory: Builds the dependency installer for a project root
            console: Console for progress output
        """
        self.config = config
        self.fetcher = fetcher or ArchiveFetcher(
            timeout=config.bundle.timeout,
            chunk_size=config.bundle.chunk_size,
        )
        self.installer_factory = installer_factory or self._default_installer
        self.console = console or Console()

    def _default_installer(self, project_root: Path) -> DependencyInstaller:
        return DependencyInstaller(
            project_root,
            command=self.config.install.command,
            dev_flag=self.config.install.dev_flag,
            timeout=self.config.install.timeout,
        )

    def run(
        self,
        project_root: Path,
        features: FeatureSet,
        install: bool | None = None,
    ) -> ProvisionState:
        """Provision ``project_root``.

        Args:
            project_root: Directory to set up (may already exist)
            features: Optional features to enable
            install: Install dependencies (default: from config)

        Returns:
            Final run state

        Raises:
            ProvisioningError: If any stage fails.
        """
        project_root = Path(project_root).resolve()
        if install is None:
            install = self.config.install.enabled

        state = ProvisionState(
            run_id=f"{datetime.now():%Y-%m-%d-%H%M%S}-{uuid.uuid4().hex[:6]}",
            project_root=str(project_root),
            features=features,
        )
        machine = StateMachine(state)

        try:
            machine.advance(Stage.FETCHING)
            with tempfile.TemporaryDirectory(prefix="deno-sv-", ignore_cleanup_errors=True) as tmp:
                state.workspace_path = tmp
                self._provision(machine, Path(tmp), project_root, install)
            machine.advance(Stage.DONE)
        except Exception as e:
            logger.debug("Run %s failed in %s", state.run_id, state.current_stage.value)
            machine.fail_stage(str(e))
            raise

        return state

    def _provision(
        self,
        machine: StateMachine,
        workspace: Path,
        project_root: Path,
        install: bool,
    ) -> None:
        """Run every working stage inside ``workspace``."""
        state = machine.state
        features = state.features
        bundle = self.config.bundle_reference()

        # Fetching
        self.console.print(f"[bold blue]Fetching[/bold blue] {bundle.package}@{bundle.version}")
        archive = self.fetcher.fetch(bundle, workspace / "bundle.tgz")
        machine.complete_stage(f"Downloaded {bundle.tarball_url}")

        # Extracting
        machine.advance(Stage.EXTRACTING)
        extract_dir = workspace / "extract"
        extracted = extract_archive(archive, extract_dir)
        template_root = extract_dir / self.config.bundle.template_subdir
        if not template_root.is_dir():
            raise ManifestInconsistencyError(self.config.bundle.template_subdir, "bundle")
        machine.complete_stage(f"Extracted {len(extracted)} files")

        # Selecting
        machine.advance(Stage.SELECTING)
        project_root.mkdir(parents=True, exist_ok=True)
        selector = FeatureFileSelector(template_root, project_root)
        for path in selector.copy(features):
            relative = path.relative_to(project_root).as_posix()
            state.files_copied.append(relative)
            self.console.print(f"[green]Created:[/green] {relative}")
        machine.complete_stage(f"Copied {len(state.files_copied)} files")

        # Activating
        machine.advance(Stage.ACTIVATING)
        activator = TextActivator(project_root)
        for path in activator.activate(features):
            state.files_activated.append(path.relative_to(project_root).as_posix())
        machine.complete_stage(f"Activated {len(state.files_activated)} files")

        # Finalizing
        machine.advance(Stage.FINALIZING)
        if install:
            installer = self.installer_factory(project_root)
            for manifest in selector.manifests_for(features):
                state.dependencies_installed.extend(installer.install(manifest.dependencies))
                state.dependencies_installed.extend(
                    installer.install(manifest.dev_dependencies, dev=True)
                )
            self.console.print(
                f"[green]Installed:[/green] {len(state.dependencies_installed)} dependencies"
            )
            state.fixups_applied = run_fixups(project_root, features)
        else:
            self.console.print("[dim]Skipping dependency installation[/dim]")
        machine.complete_stage(
            f"Installed {len(state.dependencies_installed)} dependencies, "
            f"{len(state.fixups_applied)} fixups"
        )
