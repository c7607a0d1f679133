"""Archive extraction for uploaded pipeline bundles.

Flattens zip, tar, tar.gz and tgz archives into (relative path, text)
members. Directories and platform metadata (__MACOSX folders, `._*`
resource forks, .DS_Store) are dropped before content is decoded.
"""

from __future__ import annotations

import io
import logging
import tarfile
import zipfile
import zlib
from dataclasses import dataclass
from pathlib import PurePosixPath

from flowport_core.analyzer.detection import SCRIPT_EXTENSIONS
from flowport_core.exceptions import ArchiveError, UnsupportedArchiveError
from flowport_core.settings import get_settings

logger = logging.getLogger(__name__)

ZIP_SUFFIXES = (".zip",)
TAR_SUFFIXES = (".tar", ".tar.gz", ".tgz")

RELEVANT_SUFFIXES = (".yml", ".yaml", ".json", ".xml") + SCRIPT_EXTENSIONS

ZIP_READ_ERRORS = (
    zipfile.BadZipFile,
    zipfile.LargeZipFile,
    RuntimeError,
    NotImplementedError,
    EOFError,
    zlib.error,
)
TAR_READ_ERRORS = (tarfile.TarError, EOFError, OSError, zlib.error)


@dataclass(frozen=True)
class ArchiveMember:
    """One extracted text file."""

    path: str
    content: str

    @property
    def file_name(self) -> str:
        return PurePosixPath(self.path).name

    def as_input(self) -> tuple[str, str]:
        return self.path, self.content


def is_archive_name(name: str) -> bool:
    return name.lower().endswith(ZIP_SUFFIXES + TAR_SUFFIXES)


def is_platform_metadata(path: str) -> bool:
    """True for macOS metadata entries that never carry pipeline content."""
    normalized = path.replace("\\", "/")
    file_name = normalized.rsplit("/", 1)[-1]
    return "__MACOSX" in normalized or file_name.startswith("._") or file_name == ".DS_Store"


def decode_text(payload: bytes) -> str:
    """Decode UTF-8 text, dropping a leading byte order mark."""
    return payload.decode("utf-8-sig", errors="replace")


def _extract_zip(data: bytes, max_members: int, max_bytes: int) -> list[ArchiveMember]:
    members: list[ArchiveMember] = []
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            for info in archive.infolist():
                if info.is_dir() or is_platform_metadata(info.filename):
                    continue
                if info.file_size > max_bytes:
                    logger.warning("Skipping oversized archive member %s", info.filename)
                    continue
                if len(members) >= max_members:
                    logger.warning("Archive member limit (%d) reached, ignoring the rest", max_members)
                    break
                members.append(ArchiveMember(info.filename, decode_text(archive.read(info))))
    except ZIP_READ_ERRORS as e:
        raise ArchiveError(f"Failed to extract ZIP archive: {e}") from e
    return members


def _extract_tar(data: bytes, max_members: int, max_bytes: int) -> list[ArchiveMember]:
    members: list[ArchiveMember] = []
    try:
        # r:* detects gzip compression from the stream itself
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:*") as archive:
            for info in archive:
                if not info.isfile() or info.size == 0 or is_platform_metadata(info.name):
                    continue
                if info.size > max_bytes:
                    logger.warning("Skipping oversized archive member %s", info.name)
                    continue
                if len(members) >= max_members:
                    logger.warning("Archive member limit (%d) reached, ignoring the rest", max_members)
                    break
                handle = archive.extractfile(info)
                if handle is None:
                    continue
                members.append(ArchiveMember(info.name, decode_text(handle.read())))
    except TAR_READ_ERRORS as e:
        raise ArchiveError(f"Failed to extract TAR archive: {e}") from e
    return members


def extract_archive(data: bytes, archive_name: str) -> list[ArchiveMember]:
    """Extract every text member of an archive.

    Args:
        data: Raw archive bytes
        archive_name: Uploaded file name; its suffix selects the archive kind

    Returns:
        Members in archive order

    Raises:
        UnsupportedArchiveError: If the suffix is not a supported archive kind
        ArchiveError: If the archive is corrupt
    """
    settings = get_settings()
    name = archive_name.lower()

    if name.endswith(ZIP_SUFFIXES):
        members = _extract_zip(data, settings.archive_max_members, settings.archive_max_member_bytes)
    elif name.endswith(TAR_SUFFIXES):
        members = _extract_tar(data, settings.archive_max_members, settings.archive_max_member_bytes)
    else:
        raise UnsupportedArchiveError(f"Unsupported archive format: {archive_name}")

    logger.info("Extracted %d file(s) from %s", len(members), archive_name)
    return members


def filter_relevant_files(members: list[ArchiveMember]) -> list[ArchiveMember]:
    """Keep members that look like CI/CD definitions."""
    relevant: list[ArchiveMember] = []
    for member in members:
        if is_platform_metadata(member.path):
            continue
        path = member.path.lower()
        name = member.file_name.lower()
        if (
            ".github/workflows/" in path
            or ".github/actions/" in path
            or name.endswith(RELEVANT_SUFFIXES)
            or "jenkinsfile" in name
        ):
            relevant.append(member)
    return relevant
