"""Template provisioning pipeline for deno-sv.

Fetches the template bundle, extracts it, copies the files of the enabled
features and activates feature markers:
- Archive fetcher (npm registry tarballs)
- Streaming extractor with path-safety checks
- Feature file selector
- Marker-based text activator
- Dependency installer and post-copy fixups
"""

from .activator import MarkerMode, TextActivator, activate_text, apply_marker, normalize_imports
from .errors import (
    ActivationError,
    DependencyInstallError,
    ExtractionError,
    ManifestInconsistencyError,
    ProjectWriteError,
    ProvisioningError,
    RetrievalError,
    UnsafePathError,
)
from .extractor import extract_archive, resolve_entry_path
from .fetcher import DEFAULT_REGISTRY_URL, ArchiveFetcher, BundleReference
from .fixups import POST_COPY_FIXUPS, PostCopyFixup, dedupe_vendored_package, run_fixups
from .installer import DEFAULT_INSTALL_COMMAND, DependencyInstaller
from .manifests import (
    ACTIVATION_TARGETS,
    BASE_MANIFEST,
    FEATURE_MANIFESTS,
    FEATURE_MARKERS,
    FileManifest,
)
from .selector import FeatureFileSelector

__all__ = [
    # Errors
    "ProvisioningError",
    "RetrievalError",
    "UnsafePathError",
    "ExtractionError",
    "ManifestInconsistencyError",
    "DependencyInstallError",
    "ProjectWriteError",
    "ActivationError",
    # Fetcher
    "ArchiveFetcher",
    "BundleReference",
    "DEFAULT_REGISTRY_URL",
    # Extractor
    "extract_archive",
    "resolve_entry_path",
    # Manifests
    "FileManifest",
    "BASE_MANIFEST",
    "FEATURE_MANIFESTS",
    "FEATURE_MARKERS",
    "ACTIVATION_TARGETS",
    # Selector
    "FeatureFileSelector",
    # Activator
    "MarkerMode",
    "TextActivator",
    "activate_text",
    "apply_marker",
    "normalize_imports",
    # Installer
    "DependencyInstaller",
    "DEFAULT_INSTALL_COMMAND",
    # Fixups
    "PostCopyFixup",
    "POST_COPY_FIXUPS",
    "dedupe_vendored_package",
    "run_fixups",
]
