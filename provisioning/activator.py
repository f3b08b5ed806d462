"""Marker-based activation of feature-guarded lines.

Template files carry lines prefixed with a per-feature marker such as
``//V``. When the feature is enabled the marker is stripped, which turns the
commented-out code live. When it is disabled every line starting with the
marker is deleted.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from enum import Enum
from pathlib import Path

from schemas.provision_state import Feature, FeatureSet

from .errors import ActivationError, ManifestInconsistencyError
from .manifests import ACTIVATION_TARGETS, FEATURE_MARKERS

logger = logging.getLogger(__name__)

# Single-line import statement whose specifier starts with "./"
_SAME_DIR_IMPORT = re.compile(r"""^([ \t]*import\b[^"'\n]*)(["'])\./""", re.MULTILINE)


class MarkerMode(str, Enum):
    """How a marker is resolved."""

    COMMENT_STRIP = "comment_strip"  # Feature enabled
    LINE_DELETE = "line_delete"  # Feature disabled


def apply_marker(text: str, token: str, mode: MarkerMode) -> str:
    """Resolve one feature's marker in ``text``.

    ``COMMENT_STRIP`` removes every occurrence of the token anywhere in the
    content. ``LINE_DELETE`` drops each line whose left-trimmed content
    starts with the token; other lines keep their line endings.
    """
    if mode is MarkerMode.COMMENT_STRIP:
        return text.replace(token, "")
    return "".join(
        line for line in text.splitlines(keepends=True)
        if not line.lstrip().startswith(token)
    )


def normalize_imports(text: str) -> str:
    """Strip the redundant ``./`` from same-directory import specifiers.

    Only lines that start with an ``import`` statement are rewritten;
    re-exports and comments keep their specifiers.
    """
    return _SAME_DIR_IMPORT.sub(r"\1\2", text)


def activate_text(
    text: str,
    features: Iterable[Feature],
    feature_set: FeatureSet,
    markers: Mapping[Feature, str] = FEATURE_MARKERS,
) -> str:
    """Apply marker rules for ``features`` then normalize imports.

    Pure function of the content and the feature flags.
    """
    for feature in features:
        mode = MarkerMode.COMMENT_STRIP if feature_set.is_enabled(feature) else MarkerMode.LINE_DELETE
        text = apply_marker(text, markers[feature], mode)
    return normalize_imports(text)


class TextActivator:
    """Rewrites the fixed set of marker-annotated files in a project."""

    def __init__(
        self,
        project_root: Path,
        targets: Mapping[str, tuple[Feature, ...]] = ACTIVATION_TARGETS,
        markers: Mapping[Feature, str] = FEATURE_MARKERS,
    ) -> None:
        self.project_root = Path(project_root)
        self.targets = targets
        self.markers = markers

    def activate(self, feature_set: FeatureSet) -> list[Path]:
        """Activate markers in every target file.

        Returns:
            Paths rewritten

        Raises:
            ManifestInconsistencyError: If a target file was not provisioned.
            ActivationError: If a target is not UTF-8 text or cannot be rewritten.
        """
        rewritten: list[Path] = []
        for relative, features in self.targets.items():
            path = self.project_root / relative
            if not path.is_file():
                raise ManifestInconsistencyError(relative, "activation targets")

            # newline="" keeps line endings byte-identical
            try:
                with open(path, encoding="utf-8", newline="") as f:
                    original = f.read()
            except UnicodeDecodeError as e:
                raise ActivationError(relative, "not valid UTF-8 text") from e
            except OSError as e:
                raise ActivationError(relative, e.strerror or str(e)) from e

            activated = activate_text(original, features, feature_set, self.markers)
            try:
                with open(path, "w", encoding="utf-8", newline="") as f:
                    f.write(activated)
            except OSError as e:
                raise ActivationError(relative, e.strerror or str(e)) from e

            logger.debug("Activated markers in %s", relative)
            rewritten.append(path)
        return rewritten
