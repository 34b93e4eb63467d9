"""VAST resolver custom exception hierarchy.

Provides specific exception types for the failure scenarios of wrapper
resolution: document retrieval, XML parsing, tracking, and configuration.

Exception Hierarchy:
    VastException (base)
    ├── VastParseError
    │   └── VastXMLError
    ├── VastFetchError
    │   └── VastFetchTimeoutError
    ├── VastTrackingError
    └── VastConfigError
        └── VastConfigValidationError
"""

from typing import Optional


class VastException(Exception):
    """Base exception for all VAST resolver errors.

    All VAST-specific exceptions inherit from this class to allow
    catching all VAST errors with a single except clause.
    """

    def __init__(self, message: str, context: Optional[dict] = None):
        """Initialize VAST exception.

        Args:
            message: Error message
            context: Optional context dictionary for debugging
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return string representation with context."""
        if self.context:
            context_str = "; ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


# Parsing Errors

class VastParseError(VastException):
    """Base exception for VAST parsing errors."""

    pass


class VastXMLError(VastParseError):
    """Raised when a document is not well-formed XML or has no VAST root.

    Attributes:
        xml_preview: First 200 characters of the document that failed
        parser_error: The underlying lxml parser error
    """

    def __init__(
        self,
        message: str,
        xml_preview: Optional[str] = None,
        parser_error: Optional[Exception] = None,
        context: Optional[dict] = None,
    ):
        if context is None:
            context = {}
        if xml_preview:
            context["xml_preview"] = xml_preview[:200]
        super().__init__(message, context)
        self.xml_preview = xml_preview
        self.parser_error = parser_error


# Fetch Errors

class VastFetchError(VastException):
    """Raised when a VAST document cannot be retrieved.

    Covers network failures, unsupported schemes, missing files and
    HTTP 4xx/5xx answers.

    Attributes:
        url: URL that failed
        status_code: HTTP status code if available
        cause: The underlying exception
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
        context: Optional[dict] = None,
    ):
        if context is None:
            context = {}
        if url:
            context["url"] = url[:100]
        if status_code:
            context["status_code"] = status_code
        super().__init__(message, context)
        self.url = url
        self.status_code = status_code
        self.cause = cause


class VastFetchTimeoutError(VastFetchError):
    """Raised when retrieving a VAST document times out.

    Attributes:
        timeout: Configured timeout in seconds
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        cause: Optional[Exception] = None,
        context: Optional[dict] = None,
    ):
        if context is None:
            context = {}
        if timeout:
            context["timeout"] = timeout
        super().__init__(message, url=url, cause=cause, context=context)
        self.timeout = timeout


# Tracking Errors

class VastTrackingError(VastException):
    """Raised when a tracking pixel cannot be sent.

    Attributes:
        url: The tracking URL (truncated in context)
        http_status: HTTP status code if available
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        http_status: Optional[int] = None,
        context: Optional[dict] = None,
    ):
        if context is None:
            context = {}
        if url:
            context["url"] = url[:100]
        if http_status:
            context["http_status"] = http_status
        super().__init__(message, context)
        self.url = url
        self.http_status = http_status


# Configuration Errors

class VastConfigError(VastException):
    """Base exception for VAST resolver configuration errors."""

    pass


class VastConfigValidationError(VastConfigError):
    """Raised when configuration validation fails.

    Attributes:
        config_key: Configuration key that failed validation
        config_value: The invalid configuration value
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[str] = None,
        context: Optional[dict] = None,
    ):
        if context is None:
            context = {}
        if config_key:
            context["config_key"] = config_key
        if config_value is not None:
            context["config_value"] = str(config_value)[:100]
        super().__init__(message, context)
        self.config_key = config_key
        self.config_value = config_value


__all__ = [
    "VastException",
    "VastParseError",
    "VastXMLError",
    "VastFetchError",
    "VastFetchTimeoutError",
    "VastTrackingError",
    "VastConfigError",
    "VastConfigValidationError",
]
