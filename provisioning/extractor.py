"""Streaming extraction of gzip tarballs.

The archive is read as a stream: gzip decompression feeds the tar reader
directly, and each file entry is copied to disk in bounded chunks. Entries
are processed strictly in archive order because later entries may land in
directories created by earlier ones.
"""

import logging
import os
import shutil
import tarfile
import zlib
from pathlib import Path

from .errors import ExtractionError, UnsafePathError

logger = logging.getLogger(__name__)

COPY_BUFFER_SIZE = 64 * 1024


def resolve_entry_path(root: str, name: str) -> str:
    """Join an entry name onto ``root`` and verify it stays inside.

    Args:
        root: Absolute, normalized destination root
        name: Path recorded in the archive

    Returns:
        Normalized absolute destination path

    Raises:
        UnsafePathError: If the path resolves outside ``root``.
    """
    destination = os.path.normpath(os.path.join(root, name))
    if os.path.commonpath([root, destination]) != root:
        raise UnsafePathError(name, root)
    return destination


def extract_archive(archive_path: Path, destination_root: Path) -> list[Path]:
    """Extract a ``.tar.gz`` archive under ``destination_root``.

    Args:
        archive_path: Compressed archive on disk
        destination_root: Directory to extract into (created if missing)

    Returns:
        Paths of the files written, in archive order

    Raises:
        UnsafePathError: If an entry escapes the destination root.
        ExtractionError: If the archive is corrupt or an entry cannot be written.
    """
    root = os.path.abspath(destination_root)
    os.makedirs(root, exist_ok=True)

    written: list[Path] = []
    current = str(archive_path)

    with open(archive_path, "rb") as fileobj:
        try:
            with tarfile.open(fileobj=fileobj, mode="r|gz") as tar:
                for member in tar:
                    current = member.name
                    path = _extract_member(tar, member, root)
                    if path is not None:
                        written.append(path)
        except (tarfile.TarError, zlib.error, EOFError) as e:
            raise ExtractionError(current, str(e)) from e

    logger.info("Extracted %d files into %s", len(written), root)
    return written


def _extract_member(tar: tarfile.TarFile, member: tarfile.TarInfo, root: str) -> Path | None:
    """Write a single entry. Returns the file path, or None for non-files."""
    destination = resolve_entry_path(root, member.name)

    if member.isdir():
        try:
            os.makedirs(destination, exist_ok=True)
        except OSError as e:
            raise ExtractionError(member.name, str(e)) from e
        return None

    if not member.isfile():
        logger.warning("Skipping non-regular archive entry: %s", member.name)
        return None

    source = tar.extractfile(member)
    if source is None:
        raise ExtractionError(member.name, "entry has no data")

    try:
        os.makedirs(os.path.dirname(destination), exist_ok=True)
        with source, open(destination, "wb") as target:
            shutil.copyfileobj(source, target, COPY_BUFFER_SIZE)
        if member.mode & 0o111:
            os.chmod(destination, 0o755)
    except OSError as e:
        raise ExtractionError(member.name, str(e)) from e

    logger.debug("Extracted %s", member.name)
    return Path(destination)
