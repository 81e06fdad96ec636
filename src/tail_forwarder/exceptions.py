"""
Custom exceptions for the tail forwarder.

Delivery failures are not exceptions: they are reported as
DeliveryResult values so that one failed chunk never affects another.
"""


class TailForwarderError(Exception):
    """
    Base exception for all forwarder errors.

    All other forwarder exceptions inherit from this class,
    allowing for broad exception catching when needed.
    """

    pass


class ConfigurationError(TailForwarderError):
    """
    Raised when required configuration (endpoint, API key) is missing.

    Attributes:
        missing: Names of the missing settings
        message: Detailed error message
    """

    def __init__(self, message: str, missing: list[str] | None = None):
        self.missing = missing or []
        self.message = message
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with the missing setting names."""
        if self.missing:
            return f"{self.message}: {', '.join(self.missing)}"
        return self.message


class ConversionError(TailForwarderError):
    """
    Raised when a fetch tail event cannot be converted to a CDN record.

    Recovered by the log normalizer, which substitutes a placeholder text.

    Attributes:
        reason: Short machine-readable reason ('no_request_data', 'invalid_url')
        message: Detailed error message
    """

    reason = "conversion_failed"

    def __init__(self, message: str, reason: str | None = None):
        if reason is not None:
            self.reason = reason
        self.message = message
        super().__init__(message)


class NoRequestDataError(ConversionError):
    """Raised when the tail event carries no fetch request."""

    reason = "no_request_data"

    def __init__(self, message: str = "No request data in tail event"):
        super().__init__(message)


class InvalidUrlError(ConversionError):
    """
    Raised when the request URL cannot be parsed as an absolute URL.

    Attributes:
        url: The offending URL value
    """

    reason = "invalid_url"

    def __init__(self, url: object):
        self.url = url
        super().__init__(f"Invalid request URL: {url!r}")


class InvalidChunkSizeError(TailForwarderError, ValueError):
    """
    Raised when a batch is split with a non-positive chunk size.

    Attributes:
        chunk_size: The rejected chunk size
    """

    def __init__(self, chunk_size: object):
        self.chunk_size = chunk_size
        super().__init__(f"chunk_size must be a positive integer, got {chunk_size!r}")


class ParseError(TailForwarderError):
    """
    Raised when a tail event file cannot be parsed.

    Attributes:
        line_number: The line number where parsing failed (optional)
        line_content: The content of the problematic line (optional)
        message: Detailed error message
    """

    def __init__(
        self,
        message: str,
        line_number: int | None = None,
        line_content: str | None = None,
    ):
        self.line_number = line_number
        self.line_content = line_content
        self.message = message
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with line context."""
        if self.line_number is not None and self.line_content:
            # Truncate long lines for readability
            content = (
                self.line_content[:100] + "..."
                if len(self.line_content) > 100
                else self.line_content
            )
            return f"{self.message} (line {self.line_number}: {content!r})"
        elif self.line_number is not None:
            return f"{self.message} (line {self.line_number})"
        return self.message
