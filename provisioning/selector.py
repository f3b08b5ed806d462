"""Selection and copying of template files for enabled features."""

import logging
import shutil
from pathlib import Path

from schemas.provision_state import Feature, FeatureSet

from .errors import ManifestInconsistencyError, ProjectWriteError
from .manifests import BASE_MANIFEST, FEATURE_MANIFESTS, FileManifest

logger = logging.getLogger(__name__)


class FeatureFileSelector:
    """Copies base and feature template files into the project root.

    Copies are verbatim byte copies. Pre-existing files at a manifest
    destination are overwritten; nothing is ever deleted.
    """

    def __init__(
        self,
        template_root: Path,
        project_root: Path,
        base_manifest: FileManifest = BASE_MANIFEST,
        feature_manifests: dict[Feature, FileManifest] | None = None,
    ) -> None:
        """Initialize selector.

        Args:
            template_root: Root of the extracted template tree
            project_root: Destination project directory
            base_manifest: Files copied for every project
            feature_manifests: Files copied per enabled feature
        """
        self.template_root = Path(template_root)
        self.project_root = Path(project_root)
        self.base_manifest = base_manifest
        self.feature_manifests = (
            FEATURE_MANIFESTS if feature_manifests is None else feature_manifests
        )

    def manifests_for(self, features: FeatureSet) -> list[FileManifest]:
        """Base manifest followed by the manifest of each enabled feature."""
        manifests = [self.base_manifest]
        for feature in features.enabled():
            manifest = self.feature_manifests.get(feature)
            if manifest is not None:
                manifests.append(manifest)
        return manifests

    def plan(self, features: FeatureSet) -> list[tuple[Path, Path]]:
        """Resolve every (source, destination) pair to copy.

        All sources are checked before anything is copied so a packaging
        defect never leaves a half-populated project.

        Raises:
            ManifestInconsistencyError: If a declared source file is missing.
        """
        pairs: list[tuple[Path, Path]] = []
        for manifest in self.manifests_for(features):
            for source, destination in manifest.files:
                source_path = self.template_root / source
                if not source_path.is_file():
                    raise ManifestInconsistencyError(source, manifest.name)
                pairs.append((source_path, self.project_root / destination))
        return pairs

    def copy(self, features: FeatureSet) -> list[Path]:
        """Copy the selected template files.

        Returns:
            Destination paths written

        Raises:
            ProjectWriteError: If a destination cannot be created, e.g. a
                directory already sits where a template file belongs.
        """
        copied: list[Path] = []
        for source, destination in self.plan(features):
            try:
                destination.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(source, destination)
            except OSError as e:
                relative = destination.relative_to(self.project_root).as_posix()
                raise ProjectWriteError(relative, e.strerror or str(e)) from e
            logger.debug("Copied %s -> %s", source, destination)
            copied.append(destination)
        return copied
