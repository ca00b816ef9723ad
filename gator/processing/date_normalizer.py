"""
Publication Date Normalizer
===========================

Feeds in the wild publish dates in a handful of RFC-822 descendants and
ISO-8601 variants. DateNormalizer tries a fixed, ordered list of layouts and
returns the first match as an aware UTC datetime.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Tuple

from ..utils.exceptions import UnparseableDateError

# Offsets in hours for zone abbreviations that carry a well-known meaning.
# Any other upper-case abbreviation is read as UTC.
ZONE_OFFSETS: Dict[str, int] = {
    "UT": 0,
    "UTC": 0,
    "GMT": 0,
    "Z": 0,
    "EST": -5,
    "EDT": -4,
    "CST": -6,
    "CDT": -5,
    "MST": -7,
    "MDT": -6,
    "PST": -8,
    "PDT": -7,
}

_ZONE_ABBREVIATION = re.compile(r"^[A-Z]{1,5}$")


@dataclass(frozen=True)
class DateLayout:
    """One accepted textual layout.

    Attributes:
        name: Short identifier used in debug logs
        pattern: strptime pattern for everything except a named zone
        named_zone: The value ends with a space and a zone abbreviation
        assume_utc: The pattern carries no zone; read the value as UTC
    """

    name: str
    pattern: str
    named_zone: bool = False
    assume_utc: bool = False


DEFAULT_LAYOUTS: Tuple[DateLayout, ...] = (
    DateLayout("rfc1123z", "%a, %d %b %Y %H:%M:%S %z"),
    DateLayout("rfc1123", "%a, %d %b %Y %H:%M:%S", named_zone=True),
    DateLayout("rfc822z", "%d %b %y %H:%M %z"),
    DateLayout("rfc822", "%d %b %y %H:%M", named_zone=True),
    DateLayout("rfc3339", "%Y-%m-%dT%H:%M:%S%z"),
    DateLayout("rfc3339nano", "%Y-%m-%dT%H:%M:%S.%f%z"),
    DateLayout("no_weekday", "%d %b %Y %H:%M:%S %z"),
    DateLayout("no_seconds", "%a, %d %b %Y %H:%M %z"),
    DateLayout("plain", "%Y-%m-%d %H:%M:%S", assume_utc=True),
)


class DateNormalizer:
    """Convert publication date strings to canonical UTC datetimes."""

    def __init__(self, layouts: Tuple[DateLayout, ...] = DEFAULT_LAYOUTS):
        self.layouts = layouts

    def parse(self, raw: Optional[str]) -> datetime:
        """Parse a publication date.

        Args:
            raw: Date text as found in the feed

        Returns:
            Aware datetime in UTC

        Raises:
            UnparseableDateError: If no layout matches
        """
        text = (raw or "").strip()
        if text:
            for layout in self.layouts:
                parsed = self._try_layout(text, layout)
                if parsed is None:
                    continue
                try:
                    return parsed.astimezone(timezone.utc)
                except (ValueError, OverflowError):
                    # Valid wall time whose UTC instant falls outside datetime range
                    break

        raise UnparseableDateError(raw or "")

    def _try_layout(self, text: str, layout: DateLayout) -> Optional[datetime]:
        if layout.named_zone:
            head, _, zone = text.rpartition(" ")
            if not head or not _ZONE_ABBREVIATION.match(zone):
                return None
            parsed = self._strptime(head, layout.pattern)
            if parsed is None:
                return None
            offset = timedelta(hours=ZONE_OFFSETS.get(zone, 0))
            return parsed.replace(tzinfo=timezone(offset))

        parsed = self._strptime(text, layout.pattern)
        if parsed is None:
            return None
        if layout.assume_utc:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed

    @staticmethod
    def _strptime(text: str, pattern: str) -> Optional[datetime]:
        try:
            return datetime.strptime(text, pattern)
        except ValueError:
            return None
