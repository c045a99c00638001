from __future__ import annotations


class TraktMCPError(Exception):
    """Base error for the Trakt MCP server."""


class ValidationError(TraktMCPError):
    """Raised when user input or configuration is invalid."""


class NotFoundError(TraktMCPError):
    """Raised when a requested resource is not found."""


class ExternalServiceError(TraktMCPError):
    """Raised when the Trakt API fails or is unreachable."""


class RateLimitedError(ExternalServiceError):
    """Raised when Trakt keeps throttling after the allowed retries."""


class AuthenticationError(ExternalServiceError):
    """Raised when Trakt rejects the configured credentials (401/403)."""
