"""Custom exceptions for the manga proxy and smart cacher

This module defines the exception hierarchy for both request-time and
scheduled paths. Each failure is caught at its local boundary and turned
into a boolean, ``None`` or a report outcome; the classes exist so that
boundaries can catch precisely what they expect.

All exceptions inherit from ProxyError to allow catching every
service-related error in a single except block when needed.
"""


class ProxyError(Exception):
    """Base exception for all proxy and cacher errors"""

    pass


class AuthorizationFailure(ProxyError):
    """Request signature is missing, malformed, expired or wrong

    Surfaced to clients only as a bare 403 so the reason is never leaked.
    """

    pass


class OriginMiss(ProxyError):
    """No origin URL variant produced a successful response

    Surfaced to clients as a 404.
    """

    def __init__(self, message: str, tried: list[str] | None = None) -> None:
        super().__init__(message)
        self.tried = tried or []


class CatalogUnavailable(ProxyError):
    """Catalog feed could not be fetched or did not validate

    Raised when:
    - Network error or timeout
    - Non-2xx status
    - Body is not a JSON array of {name, chapters}

    The traversal run ends early and leaves the checkpoint untouched.
    """

    pass


class PageWarmFailure(ProxyError):
    """A single page could not be warmed from any variant

    Interpreted as end-of-chapter by the batch reducer, never retried.
    """

    pass


class StateStoreError(ProxyError):
    """Persisted state could not be read or written"""

    pass


class ConfigValidationError(ProxyError):
    """Configuration validation failed"""

    pass
