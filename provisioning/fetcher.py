"""Template bundle retrieval from an npm-compatible registry.

Downloads the gzip tarball of a versioned package and streams it to a local
file. The archive contents are not inspected here.
"""

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import requests

from .errors import RetrievalError

logger = logging.getLogger(__name__)


DEFAULT_REGISTRY_URL = "https://registry.npmjs.org"


@dataclass(frozen=True)
class BundleReference:
    """Identifies the remote template archive."""

    registry_url: str
    scope: str
    name: str
    version: str
    sha256: str = ""

    @property
    def package(self) -> str:
        """Full package name, e.g. ``@deno-sv/templates``."""
        if not self.scope:
            return self.name
        scope = self.scope if self.scope.startswith("@") else f"@{self.scope}"
        return f"{scope}/{self.name}"

    @property
    def tarball_url(self) -> str:
        """Registry URL of the package tarball."""
        base = self.registry_url.rstrip("/")
        return f"{base}/{self.package}/-/{self.name}-{self.version}.tgz"


class ArchiveFetcher:
    """Fetches template bundles with a single streaming request.

    Usage:
        fetcher = ArchiveFetcher()
        fetcher.fetch(bundle, workspace / "bundle.tgz")
    """

    def __init__(
        self,
        timeout: float = 60.0,
        chunk_size: int = 64 * 1024,
        session: Optional[requests.Session] = None,
    ):
        """Initialize fetcher.

        Args:
            timeout: Connect/read timeout in seconds
            chunk_size: Bytes written per chunk
            session: Optional preconfigured session
        """
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.session = session or requests.Session()

    def fetch(self, bundle: BundleReference, destination: Path) -> Path:
        """Download the bundle archive to ``destination``.

        Args:
            bundle: Bundle to download
            destination: File to write

        Returns:
            Path to the written archive

        Raises:
            RetrievalError: If the registry is unreachable, answers with a
                non-success status, or the body is incomplete.
        """
        url = bundle.tarball_url
        logger.info("Fetching %s@%s from %s", bundle.package, bundle.version, url)

        digest = hashlib.sha256()
        written = 0
        try:
            with self.session.get(url, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()
                expected = _expected_length(response)

                with open(destination, "wb") as f:
                    for chunk in response.iter_content(chunk_size=self.chunk_size):
                        if not chunk:
                            continue
                        f.write(chunk)
                        digest.update(chunk)
                        written += len(chunk)
        except requests.RequestException as e:
            raise RetrievalError(f"Failed to download {bundle.package}@{bundle.version}: {e}") from e

        if expected is not None and written != expected:
            raise RetrievalError(
                f"Incomplete download of {bundle.package}@{bundle.version}: "
                f"received {written} of {expected} bytes"
            )

        if bundle.sha256 and digest.hexdigest() != bundle.sha256.lower():
            raise RetrievalError(
                f"Checksum mismatch for {bundle.package}@{bundle.version}. "
                "The download may be corrupted."
            )

        logger.debug("Wrote %d bytes to %s", written, destination)
        return destination


def _expected_length(response: requests.Response) -> int | None:
    """Declared body size, when it describes the bytes we will receive."""
    if response.headers.get("Content-Encoding"):
        return None
    length = response.headers.get("Content-Length")
    if length is None:
        return None
    try:
        return int(length)
    except ValueError:
        return None
