"""
Token version checks and migration bookkeeping.
"""

from __future__ import annotations

from typing import List, Tuple

from .errors import UnsupportedVersionError
from .metadata import CURRENT_VERSION, TokenMetadata

SUPPORTED_VERSIONS: Tuple[int, ...] = (1,)


def is_supported_version(version: int) -> bool:
    return version in SUPPORTED_VERSIONS


def validate_version(metadata: TokenMetadata) -> None:
    """
    Raises
    ------
    UnsupportedVersionError
        If ``metadata.version`` is not in :data:`SUPPORTED_VERSIONS`.
    """
    if not is_supported_version(metadata.version):
        supported = ", ".join(str(v) for v in SUPPORTED_VERSIONS)
        raise UnsupportedVersionError(
            f"Unsupported token version: {metadata.version}. Supported versions: {supported}"
        )


def is_current_version(version: int) -> bool:
    return version == CURRENT_VERSION


def needs_migration(metadata: TokenMetadata) -> bool:
    return not is_current_version(metadata.version)


def get_migration_path(from_version: int, to_version: int = CURRENT_VERSION) -> List[int]:
    """
    Versions to step through when migrating a token.

    Only version 1 exists, so the only valid path is the empty one.
    """
    if not is_supported_version(from_version):
        raise UnsupportedVersionError(f"Unsupported source version: {from_version}")
    if not is_supported_version(to_version):
        raise UnsupportedVersionError(f"Unsupported target version: {to_version}")
    if from_version == to_version:
        return []
    raise UnsupportedVersionError(
        f"No migration path available from version {from_version} to {to_version}"
    )


def get_version_info(version: int) -> dict:
    supported = is_supported_version(version)
    return {
        "version": version,
        "is_current": is_current_version(version),
        "is_supported": supported,
        "needs_migration": supported and not is_current_version(version),
    }


def format_version(version: int) -> str:
    return f"v{version}"
