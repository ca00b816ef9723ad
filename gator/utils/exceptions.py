"""
Gator Custom Exceptions
=======================

Custom exception hierarchy for Gator with error codes, context information,
and user-friendly error messages.
"""

from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for categorizing exceptions."""

    # Configuration errors (C001-C099)
    CONFIG_INVALID = "C001"
    CONFIG_MISSING = "C002"
    CONFIG_PARSE_ERROR = "C003"
    NOT_LOGGED_IN = "C004"

    # Database errors (D001-D099)
    DATABASE_CONNECTION = "D001"
    DATABASE_CONSTRAINT = "D003"
    DATABASE_ERROR = "D006"

    # Feed errors (F001-F099)
    FEED_FETCH_TIMEOUT = "F002"
    FEED_PARSE_ERROR = "F003"
    FEED_NETWORK_ERROR = "F004"
    FEED_NOT_FOUND = "F006"
    FEED_HTTP_STATUS = "F007"
    FEED_NONE_AVAILABLE = "F008"

    # Content processing errors (P001-P099)
    DATE_UNPARSEABLE = "P005"

    # Validation errors (V001-V099)
    VALIDATION_REQUIRED_FIELD = "V001"
    VALIDATION_INVALID_FORMAT = "V002"
    VALIDATION_OUT_OF_RANGE = "V003"

    # Resource management errors (R001-R099)
    DUPLICATE_RESOURCE = "R001"
    RESOURCE_NOT_FOUND = "R002"


class GatorError(Exception):
    """Base exception for all Gator errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        recoverable: bool = False,
    ):
        """Initialize Gator error.

        Args:
            message: Technical error message for logging
            error_code: Categorized error code
            context: Additional context information
            user_message: User-friendly error message
            recoverable: Whether the error is recoverable
        """
        super().__init__(message)
        self.error_code = error_code
        self.context = context or {}
        self.user_message = user_message or message
        self.recoverable = recoverable

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code.value if self.error_code else None,
            "error_message": str(self),
            "user_message": self.user_message,
            "context": self.context,
            "recoverable": self.recoverable,
        }

    def __str__(self) -> str:
        """String representation with error code."""
        if self.error_code:
            return f"[{self.error_code.value}] {super().__str__()}"
        return super().__str__()


class ConfigurationError(GatorError):
    """Configuration-related errors, including the user config file."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        context = kwargs.get("context", {})
        if config_key:
            context["config_key"] = config_key

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.CONFIG_INVALID),
            context=context,
            user_message=kwargs.get("user_message", f"Configuration error: {message}"),
            **{
                k: v
                for k, v in kwargs.items()
                if k not in ["context", "error_code", "user_message"]
            },
        )


class DatabaseError(GatorError):
    """Persistence failures other than a duplicate post URL."""

    def __init__(self, message: str, query: Optional[str] = None, **kwargs):
        """Initialize database error.

        Args:
            message: Error message
            query: SQL query that caused the error
            **kwargs: Additional arguments for GatorError
        """
        context = kwargs.get("context", {})
        if query:
            context["query"] = query

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.DATABASE_CONNECTION),
            context=context,
            user_message=kwargs.get("user_message", "Database operation failed"),
            recoverable=kwargs.get("recoverable", True),
            **{
                k: v
                for k, v in kwargs.items()
                if k not in ["context", "error_code", "user_message", "recoverable"]
            },
        )


class FeedError(GatorError):
    """Feed fetching and parsing errors."""

    def __init__(self, message: str, feed_url: Optional[str] = None, **kwargs):
        """Initialize feed error.

        Args:
            message: Error message
            feed_url: Feed URL that caused the error
            **kwargs: Additional arguments for GatorError
        """
        context = kwargs.get("context", {})
        if feed_url:
            context["feed_url"] = feed_url
        self.feed_url = feed_url

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.FEED_NETWORK_ERROR),
            context=context,
            user_message=kwargs.get(
                "user_message", f"Feed processing failed: {message}"
            ),
            recoverable=kwargs.get("recoverable", True),
            **{
                k: v
                for k, v in kwargs.items()
                if k not in ["context", "error_code", "user_message", "recoverable"]
            },
        )


class NetworkError(FeedError):
    """Transport failure or deadline exceeded while fetching a feed."""

    def __init__(self, message: str, feed_url: Optional[str] = None, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.FEED_NETWORK_ERROR)
        super().__init__(message, feed_url=feed_url, **kwargs)


class HTTPError(FeedError):
    """Feed server answered with a status outside 200..299."""

    def __init__(
        self, message: str, status: int, feed_url: Optional[str] = None, **kwargs
    ):
        context = kwargs.pop("context", {})
        context["status"] = status
        self.status = status
        kwargs.setdefault("error_code", ErrorCode.FEED_HTTP_STATUS)
        super().__init__(message, feed_url=feed_url, context=context, **kwargs)


class ParseError(FeedError):
    """Response body is not a well-formed feed document."""

    def __init__(self, message: str, feed_url: Optional[str] = None, **kwargs):
        kwargs.setdefault("error_code", ErrorCode.FEED_PARSE_ERROR)
        super().__init__(message, feed_url=feed_url, **kwargs)


class UnparseableDateError(GatorError):
    """Publication date matched none of the supported layouts."""

    def __init__(self, raw: str, **kwargs):
        context = kwargs.get("context", {})
        context["raw_date"] = raw
        self.raw = raw

        super().__init__(
            message=f"Unparseable date: {raw!r}",
            error_code=kwargs.get("error_code", ErrorCode.DATE_UNPARSEABLE),
            context=context,
            user_message=kwargs.get("user_message", f"Could not parse date {raw!r}"),
            recoverable=kwargs.get("recoverable", True),
        )


class NotFoundError(GatorError):
    """A looked-up resource does not exist."""

    def __init__(self, message: str, resource: Optional[str] = None, **kwargs):
        context = kwargs.get("context", {})
        if resource:
            context["resource"] = resource

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.RESOURCE_NOT_FOUND),
            context=context,
            user_message=kwargs.get("user_message", message),
            recoverable=kwargs.get("recoverable", False),
            **{
                k: v
                for k, v in kwargs.items()
                if k not in ["context", "error_code", "user_message", "recoverable"]
            },
        )


class NoFeedsAvailableError(NotFoundError):
    """No feeds exist in the scheduling scope."""

    def __init__(self, message: str = "No feeds available to fetch", **kwargs):
        kwargs.setdefault("error_code", ErrorCode.FEED_NONE_AVAILABLE)
        kwargs.setdefault(
            "user_message", "No feeds to fetch. Add or follow a feed first."
        )
        kwargs.setdefault("recoverable", True)
        super().__init__(message, resource="feed", **kwargs)


class UnknownFeedError(NotFoundError):
    """A URL does not belong to any registered feed."""

    def __init__(self, feed_url: str, **kwargs):
        context = kwargs.pop("context", {})
        context["feed_url"] = feed_url
        self.feed_url = feed_url
        kwargs.setdefault("error_code", ErrorCode.FEED_NOT_FOUND)
        kwargs.setdefault("user_message", f"No feed registered for {feed_url}")
        super().__init__(
            f"Unknown feed URL: {feed_url}", resource="feed", context=context, **kwargs
        )


class AlreadyExistsError(GatorError):
    """Creating a resource collided with an existing one."""

    def __init__(self, message: str, resource: Optional[str] = None, **kwargs):
        context = kwargs.get("context", {})
        if resource:
            context["resource"] = resource

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.DUPLICATE_RESOURCE),
            context=context,
            user_message=kwargs.get("user_message", message),
            **{
                k: v
                for k, v in kwargs.items()
                if k not in ["context", "error_code", "user_message"]
            },
        )


class ValidationError(GatorError):
    """Data validation errors."""

    def __init__(self, message: str, field_name: Optional[str] = None, **kwargs):
        """Initialize validation error.

        Args:
            message: Error message
            field_name: Field name that failed validation
            **kwargs: Additional arguments for GatorError
        """
        context = kwargs.get("context", {})
        if field_name:
            context["field_name"] = field_name

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.VALIDATION_INVALID_FORMAT),
            context=context,
            user_message=kwargs.get(
                "user_message", f"Invalid {field_name or 'input'}: {message}"
            ),
            recoverable=kwargs.get("recoverable", False),
            **{
                k: v
                for k, v in kwargs.items()
                if k not in ["context", "error_code", "user_message", "recoverable"]
            },
        )


def get_user_friendly_message(exception: Exception) -> str:
    """Get user-friendly error message for any exception.

    Args:
        exception: Exception to get message for

    Returns:
        User-friendly error message
    """
    if isinstance(exception, GatorError):
        return exception.user_message

    return "An unexpected error occurred. Please try again later."
