"""
Gator Input Validators
======================

Validation for user input: feed URLs, user and feed names, and the
polling interval given to ``agg``.
"""

import re
from urllib.parse import urlparse, urlunparse

from .exceptions import ValidationError, ErrorCode


class URLValidator:
    """URL validation and normalization utilities."""

    ALLOWED_SCHEMES = ('http', 'https')

    @classmethod
    def validate_feed_url(cls, url: str) -> str:
        """Validate and normalize an RSS feed URL.

        Scheme and host are lower-cased and any fragment is dropped.

        Args:
            url: URL to validate

        Returns:
            Normalized URL

        Raises:
            ValidationError: If URL is invalid
        """
        if not url or not isinstance(url, str) or not url.strip():
            raise ValidationError(
                "URL is required and must be a string",
                error_code=ErrorCode.VALIDATION_REQUIRED_FIELD,
                field_name="url"
            )

        url = url.strip()

        try:
            parsed = urlparse(url)
        except ValueError as e:
            raise ValidationError(
                f"Invalid URL format: {str(e)}",
                error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
                field_name="url"
            ) from e

        if parsed.scheme.lower() not in cls.ALLOWED_SCHEMES:
            raise ValidationError(
                f"URL scheme must be {' or '.join(cls.ALLOWED_SCHEMES)}",
                error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
                field_name="url"
            )

        if not parsed.netloc:
            raise ValidationError(
                "URL must include a hostname",
                error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
                field_name="url"
            )

        return urlunparse(parsed._replace(
            scheme=parsed.scheme.lower(),
            netloc=parsed.netloc.lower(),
            fragment=''
        ))


def validate_name(value: str, field_name: str = "name") -> str:
    """Strip a user or feed name and reject blanks."""
    if not value or not value.strip():
        raise ValidationError(
            f"{field_name} must not be empty",
            error_code=ErrorCode.VALIDATION_REQUIRED_FIELD,
            field_name=field_name
        )
    return value.strip()


# Seconds per unit, as accepted by Go's time.ParseDuration.
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_interval(text: str) -> float:
    """Parse a duration such as ``1m``, ``30s``, ``1h30m`` or ``500ms``.

    Args:
        text: Duration string, a sequence of number+unit pairs

    Returns:
        Duration in seconds

    Raises:
        ValidationError: If the text is malformed or not positive
    """
    raw = (text or "").strip()
    if not raw:
        raise ValidationError(
            "Interval is required, e.g. 30s or 1m",
            error_code=ErrorCode.VALIDATION_REQUIRED_FIELD,
            field_name="interval"
        )

    sign = 1.0
    body = raw
    if body[0] in "+-":
        sign = -1.0 if body[0] == "-" else 1.0
        body = body[1:]

    total = 0.0
    position = 0
    while position < len(body):
        match = _DURATION_PART.match(body, position)
        if match is None:
            raise ValidationError(
                f"Invalid duration {raw!r}, expected e.g. 30s, 1m or 1h30m",
                error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
                field_name="interval"
            )
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if body == "":
        raise ValidationError(
            f"Invalid duration {raw!r}",
            error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
            field_name="interval"
        )

    seconds = sign * total
    if seconds <= 0:
        raise ValidationError(
            f"Interval must be positive, got {raw!r}",
            error_code=ErrorCode.VALIDATION_OUT_OF_RANGE,
            field_name="interval"
        )
    return seconds
