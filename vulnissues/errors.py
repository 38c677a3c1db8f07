"""Error types raised by vulnissues"""

from typing import Optional


class VulnIssuesError(RuntimeError):
    """Base class for all vulnissues errors."""


class ConfigurationError(VulnIssuesError):
    """Raised when required settings are missing or malformed."""


class UpstreamError(VulnIssuesError):
    """Raised when the scanning service or the issue tracker fails a request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitedError(UpstreamError):
    """Raised when a request is still rate limited after its single retry."""
