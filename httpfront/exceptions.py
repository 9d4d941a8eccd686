"""
Exception hierarchy for the HTTP front-end component.

Every failure this package raises derives from HttpFrontError, so a composition
root can tell a misconfigured listener apart from errors raised by route code.
None of these are caught inside the package: a listener that cannot be set up
correctly must never accept traffic.
"""

from typing import Any


class HttpFrontError(Exception):
    """
    Base exception for all httpfront errors.

    Example:
        try:
            await component.start()
        except HttpFrontError as e:
            lg.error("http component failed", extra={"exception": e})
            raise
    """

    def __init__(self, message: str, **context: Any) -> None:
        """
        Initialize the exception with a message and optional context.

        Args:
            message: Human-readable error message
            **context: Additional context information (stored in self.context)
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """String representation with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class ConfigError(HttpFrontError):
    """
    Configuration errors.

    Examples:
        - Cluster port not in the "3000++" form
        - Server id without a numeric worker index
        - SSL enabled without key or certificate path
        - Malformed YAML configuration file
    """

    pass


class TLSError(HttpFrontError):
    """Raised when TLS key or certificate material cannot be read."""

    pass


class RouteLoadError(HttpFrontError):
    """
    Route discovery and mounting errors.

    Examples:
        - Route directory does not exist
        - Route module fails to import
        - Route module has no create_router() factory
        - Factory returned something that cannot be mounted
    """

    pass


class LifecycleError(HttpFrontError):
    """
    Listener lifecycle errors.

    Examples:
        - start() on a component that is not stopped
        - stop() while the listener is still starting
        - Socket bind failed
    """

    pass
