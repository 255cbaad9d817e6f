"""Installer-specific exceptions.

Soft "not found" results are not exceptions: the resolver returns None and the
installer returns an empty list. Everything here is a hard failure.
"""


class InstallerError(Exception):
    """Base exception for package installer operations."""

    def __init__(self, message: str, context: dict | None = None):
        """Initialize with message and optional context.

        Args:
            message: Human-readable error message
            context: Optional dict with additional context (paths, package ids, etc.)
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class InvalidArgumentError(InstallerError, ValueError):
    """Required input missing or malformed (caller bug)."""


class ConfigurationConflictError(InstallerError):
    """Same package type requested against two different installation roots."""


class PackageInstallError(InstallerError):
    """Package fetch, unpack or registration failed."""


class PackageSourceError(PackageInstallError):
    """A package source could not be queried or downloaded from."""
