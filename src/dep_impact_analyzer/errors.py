"""Exception taxonomy for dependency impact analysis.

Only :class:`InvalidInputError` is fatal for an analysis run. Registry
errors are contained to the package they concern and version parse errors
downgrade a comparison to ``unknown``.
"""

from __future__ import annotations

from .models import ErrorKind


class DependencyAnalysisError(Exception):
    """Base class for all errors raised by this package."""


class InvalidInputError(DependencyAnalysisError, ValueError):
    """The manifest or an argument is structurally invalid."""


class ManifestError(DependencyAnalysisError):
    """A manifest file could not be read or decoded."""


class VersionParseError(DependencyAnalysisError, ValueError):
    """A version string could not be coerced to ``major.minor.patch``."""


class RegistryError(DependencyAnalysisError):
    """Terminal failure to fetch metadata for one package.

    Attributes:
        package: Name of the package as requested.
        kind: Failure class used for reporting.
    """

    kind: ErrorKind = ErrorKind.TRANSPORT

    def __init__(self, package: str, message: str) -> None:
        self.package = package
        super().__init__(message)


class PackageNotFoundError(RegistryError):
    """The registry has no such package (HTTP 404)."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, package: str) -> None:
        super().__init__(package, f'Package "{package}" not found')


class RateLimitedError(RegistryError):
    """The registry refused the request (HTTP 429)."""

    kind = ErrorKind.RATE_LIMITED

    def __init__(self, package: str) -> None:
        super().__init__(package, f'Rate limit exceeded for package "{package}"')


class RegistryTimeoutError(RegistryError):
    """The request exceeded the configured timeout."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, package: str) -> None:
        super().__init__(package, f'Request timeout for package "{package}"')


class RegistryTransportError(RegistryError):
    """Any other network, protocol or payload failure."""

    kind = ErrorKind.TRANSPORT

    def __init__(self, package: str, reason: str) -> None:
        super().__init__(package, f'Failed to fetch package "{package}": {reason}')


__all__ = [
    "DependencyAnalysisError",
    "InvalidInputError",
    "ManifestError",
    "PackageNotFoundError",
    "RateLimitedError",
    "RegistryError",
    "RegistryTimeoutError",
    "RegistryTransportError",
    "VersionParseError",
]
