"""Static manifests for the Svelte on Deno template bundle.

Each manifest defines:
- Template files to copy (source relative to the template root,
  destination relative to the project root)
- Dependencies installed with the package manager

Destinations must not overlap between features that can be enabled together.
"""

from dataclasses import dataclass, field

from schemas.provision_state import Feature


@dataclass(frozen=True)
class FileManifest:
    """Files and dependencies contributed by the base template or one feature."""

    name: str
    files: tuple[tuple[str, str], ...]  # (source, destination)
    dependencies: tuple[str, ...] = field(default_factory=tuple)
    dev_dependencies: tuple[str, ...] = field(default_factory=tuple)

    @property
    def destinations(self) -> list[str]:
        return [destination for _, destination in self.files]


# =============================================================================
# Base template
# =============================================================================

BASE_MANIFEST = FileManifest(
    name="base",
    files=(
        ("deno.json", "deno.json"),
        ("vite.config.ts", "vite.config.ts"),
        ("svelte.config.js", "svelte.config.js"),
        ("gitignore", ".gitignore"),
        ("src/app.html", "src/app.html"),
        ("src/app.d.ts", "src/app.d.ts"),
        ("src/routes/+layout.svelte", "src/routes/+layout.svelte"),
        ("src/routes/+page.svelte", "src/routes/+page.svelte"),
        ("static/favicon.png", "static/favicon.png"),
    ),
    dependencies=(
        "npm:@sveltejs/kit",
        "npm:svelte",
    ),
    dev_dependencies=(
        "npm:vite",
        "npm:@sveltejs/vite-plugin-svelte",
        "npm:@sveltejs/adapter-auto",
        "npm:@deno/vite-plugin",
    ),
)


# =============================================================================
# Optional features
# =============================================================================

VITEST_MANIFEST = FileManifest(
    name="vitest",
    files=(
        ("vitest/setup.ts", "tests/setup.ts"),
        ("vitest/page.svelte.test.ts", "tests/page.svelte.test.ts"),
    ),
    dev_dependencies=(
        "npm:vitest",
        "npm:@testing-library/svelte",
        "npm:@testing-library/jest-dom",
        "npm:jsdom",
    ),
)

TAILWIND_MANIFEST = FileManifest(
    name="tailwind",
    files=(("tailwind/app.css", "src/app.css"),),
    dev_dependencies=(
        "npm:tailwindcss",
        "npm:@tailwindcss/vite",
    ),
)

FEATURE_MANIFESTS: dict[Feature, FileManifest] = {
    Feature.VITEST: VITEST_MANIFEST,
    Feature.TAILWIND: TAILWIND_MANIFEST,
}


# =============================================================================
# Markers
# =============================================================================

# Comment sentinel followed by a one-letter feature tag.
FEATURE_MARKERS: dict[Feature, str] = {
    Feature.VITEST: "//V",
    Feature.TAILWIND: "//T",
}

# Destination files carrying markers, and the features each one reacts to.
ACTIVATION_TARGETS: dict[str, tuple[Feature, ...]] = {
    "vite.config.ts": (Feature.VITEST, Feature.TAILWIND),
    "src/routes/+layout.svelte": (Feature.TAILWIND,),
}
