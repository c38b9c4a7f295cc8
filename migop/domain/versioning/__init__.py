"""Version identifiers and version-history records."""

from migop.domain.versioning.version_manager import (
    COMMITTEE_DISPLAY_NAMES,
    COMMITTEE_OPTIONS,
    ParsedVersion,
    ValidationResult,
    VersionManager,
    VersionRecord,
    VersionType,
)

__all__ = [
    "COMMITTEE_DISPLAY_NAMES",
    "COMMITTEE_OPTIONS",
    "ParsedVersion",
    "ValidationResult",
    "VersionManager",
    "VersionRecord",
    "VersionType",
]
