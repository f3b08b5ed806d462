"""Best-effort environment fixups run after dependencies are installed.

A fixup only runs when all of its features are enabled together. When the
directory layout it expects is absent it does nothing and reports False.
"""

import logging
import os
import re
import shutil
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from schemas.provision_state import Feature, FeatureSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PostCopyFixup:
    """A project adjustment tied to a combination of features."""

    name: str
    features: tuple[Feature, ...]
    apply: Callable[[Path], bool]

    def applies_to(self, feature_set: FeatureSet) -> bool:
        return all(feature_set.is_enabled(feature) for feature in self.features)


def _version_key(version: str) -> tuple[int, ...]:
    """Sort key for a Deno store suffix like ``6.0.7_@types+node@22.10.2``."""
    return tuple(int(part) for part in re.findall(r"\d+", version.split("_", 1)[0]))


def dedupe_vendored_package(project_root: Path, package: str) -> bool:
    """Collapse duplicate copies of ``package`` in Deno's npm store.

    Two dependencies that each vendor their own copy of a package make it
    load twice. The highest version found is kept, the top-level
    ``node_modules/<package>`` link is pointed at it, and every other version
    directory is replaced by a link to the kept one.

    Returns:
        True if duplicates were collapsed, False if there was nothing to do.
    """
    node_modules = Path(project_root) / "node_modules"
    store = node_modules / ".deno"
    if not store.is_dir():
        return False

    prefix = f"{package}@"
    candidates = [
        entry for entry in store.iterdir()
        if entry.name.startswith(prefix) and entry.is_dir() and not entry.is_symlink()
    ]
    if len(candidates) < 2:
        return False

    keep = max(candidates, key=lambda entry: _version_key(entry.name[len(prefix):]))
    target = keep / "node_modules" / package
    if not target.is_dir():
        return False

    link = node_modules / package
    if link.is_symlink() or link.is_file():
        link.unlink()
    elif link.is_dir():
        shutil.rmtree(link)
    link.symlink_to(os.path.relpath(target, link.parent), target_is_directory=True)

    for duplicate in candidates:
        if duplicate == keep:
            continue
        shutil.rmtree(duplicate)
        duplicate.symlink_to(keep.name, target_is_directory=True)
        logger.info("Redirected %s to %s", duplicate.name, keep.name)

    return True


POST_COPY_FIXUPS: list[PostCopyFixup] = [
    # vitest and @tailwindcss/vite each pull their own vite into the store
    PostCopyFixup(
        name="dedupe-vite",
        features=(Feature.VITEST, Feature.TAILWIND),
        apply=lambda project_root: dedupe_vendored_package(project_root, "vite"),
    ),
]


def run_fixups(
    project_root: Path,
    feature_set: FeatureSet,
    fixups: list[PostCopyFixup] | None = None,
) -> list[str]:
    """Run every fixup whose features are jointly enabled.

    Returns:
        Names of the fixups that changed something
    """
    applied: list[str] = []
    for fixup in POST_COPY_FIXUPS if fixups is None else fixups:
        if not fixup.applies_to(feature_set):
            continue
        if fixup.apply(Path(project_root)):
            applied.append(fixup.name)
        else:
            logger.debug("Fixup %s not needed", fixup.name)
    return applied
