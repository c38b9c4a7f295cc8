"""Version manager - generate, parse and validate version identifiers.

Version identifier format: ``#:TYPE:yy:mm:dd:hh:mm:ss``

- ``#`` sequential number taken from the document's version counter
- ``TYPE`` B (Before), A (After) or O (Official)
- ``yy:mm:dd`` date, two-digit year
- ``hh:mm:ss`` time, 24-hour clock
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from migop.domain.errors import InvalidVersionIdentifierError, InvalidVersionTypeError


logger = logging.getLogger(__name__)


class VersionType(str, Enum):
    """Checkpoint kind encoded in a version identifier."""
    BEFORE = "B"
    AFTER = "A"
    OFFICIAL = "O"


MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

COMMITTEE_DISPLAY_NAMES: Dict[str, str] = {
    "PDBOR": "PDBOR Subcommittee",
    "Policy": "Policy Committee",
    **{f"D{n}": f"District {n}" for n in range(1, 14)},
    "State": "State Committee",
}

# (value, label) pairs offered to the user at the second pause, in display order.
COMMITTEE_OPTIONS: List[Tuple[str, str]] = list(COMMITTEE_DISPLAY_NAMES.items())

_FIELD_COUNT = 8
_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_MARKUP_TAG = re.compile(r"<[^>]*>")
_NUMERIC_FIELD = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class ParsedVersion:
    """Components of a version identifier."""
    sequence: int
    type: VersionType
    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int

    @property
    def full_year(self) -> int:
        return 2000 + self.year

    def to_datetime(self) -> datetime:
        """Timestamp encoded in the identifier (naive, local time)."""
        return datetime(
            self.full_year, self.month, self.day,
            self.hour, self.minute, self.second,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sequence": self.sequence,
            "type": self.type.value,
            "year": self.year,
            "month": self.month,
            "day": self.day,
            "hour": self.hour,
            "minute": self.minute,
            "second": self.second,
        }


@dataclass
class VersionRecord:
    """Entry appended to the document's version-history page."""
    version_number: str
    committee: str
    timestamp: str
    comments: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "versionNumber": self.version_number,
            "committee": self.committee,
            "timestamp": self.timestamp,
            "comments": self.comments,
        }


@dataclass
class ValidationResult:
    """Outcome of validating a version record."""
    valid: bool
    errors: List[str] = field(default_factory=list)


class VersionManager:
    """Pure helpers for the two-checkpoint versioning ritual."""

    def generate(
        self,
        counter: int,
        version_type: Union[VersionType, str],
        timestamp: Optional[datetime] = None,
    ) -> str:
        """Build a version identifier from the counter, a type tag and a time.

        Raises:
            InvalidVersionTypeError: type is not B, A or O
        """
        try:
            vtype = VersionType(version_type)
        except ValueError:
            logger.error(f"Invalid version type: {version_type!r}")
            raise InvalidVersionTypeError(
                f"Invalid version type '{version_type}'; expected one of B, A, O"
            )

        ts = timestamp or datetime.now()
        version = (
            f"{counter}:{vtype.value}:"
            f"{ts.year % 100:02d}:{ts.month:02d}:{ts.day:02d}:"
            f"{ts.hour:02d}:{ts.minute:02d}:{ts.second:02d}"
        )
        logger.info(f"Version number generated: {version}")
        return version

    def parse(self, identifier: str) -> ParsedVersion:
        """Split an identifier back into its components.

        Raises:
            InvalidVersionIdentifierError: not exactly 8 colon-delimited fields,
                unknown type tag, or non-numeric/out-of-range date parts
        """
        parts = (identifier or "").split(":")
        if len(parts) != _FIELD_COUNT:
            raise InvalidVersionIdentifierError(
                f"Invalid version identifier '{identifier}': expected {_FIELD_COUNT} fields, got {len(parts)}"
            )

        try:
            vtype = VersionType(parts[1])
        except ValueError:
            raise InvalidVersionIdentifierError(
                f"Invalid version identifier '{identifier}': unknown type '{parts[1]}'"
            )

        fields = (parts[0], *parts[2:])
        if not all(_NUMERIC_FIELD.fullmatch(p) for p in fields):
            raise InvalidVersionIdentifierError(
                f"Invalid version identifier '{identifier}': non-numeric field"
            )
        numbers = [int(p) for p in fields]

        sequence, year, month, day, hour, minute, second = numbers
        parsed = ParsedVersion(
            sequence=sequence,
            type=vtype,
            year=year,
            month=month,
            day=day,
            hour=hour,
            minute=minute,
            second=second,
        )
        try:
            parsed.to_datetime()
        except ValueError as e:
            raise InvalidVersionIdentifierError(
                f"Invalid version identifier '{identifier}': {e}"
            )
        return parsed

    def format_for_display(self, parsed: ParsedVersion) -> str:
        """Human-readable date, e.g. "September 30, 2025 at 9:15 AM"."""
        hour12 = parsed.hour % 12 or 12
        ampm = "PM" if parsed.hour >= 12 else "AM"
        return (
            f"{MONTH_NAMES[parsed.month - 1]} {parsed.day}, {parsed.full_year}"
            f" at {hour12}:{parsed.minute:02d} {ampm}"
        )

    def validate(self, record: VersionRecord) -> ValidationResult:
        """Check a history record before it is written to the document."""
        errors: List[str] = []

        if not record.version_number:
            errors.append("Version number is required")
        else:
            try:
                self.parse(record.version_number)
            except InvalidVersionIdentifierError:
                errors.append("Invalid version number format")

        if not record.committee:
            errors.append("Committee is required")

        if not record.timestamp:
            errors.append("Timestamp is required")

        if not record.comments:
            errors.append("Comments are required")

        if errors:
            logger.warning(f"Version data validation failed: {', '.join(errors)}")

        return ValidationResult(valid=not errors, errors=errors)

    @staticmethod
    def sanitize_comments(text: Optional[str]) -> str:
        """Trim, collapse runs of 3+ newlines to 2, and strip markup tags."""
        if not text:
            return ""
        cleaned = text.strip()
        cleaned = _EXCESS_NEWLINES.sub("\n\n", cleaned)
        cleaned = _MARKUP_TAG.sub("", cleaned)
        return cleaned

    @staticmethod
    def committee_display_name(value: Optional[str]) -> str:
        """Map a committee abbreviation to its display name."""
        if not value:
            return ""
        return COMMITTEE_DISPLAY_NAMES.get(value, value)
