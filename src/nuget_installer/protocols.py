"""Protocols for the installer's collaborators.

Mechanism not policy: the installer doesn't know where configuration lives,
how a source is reached or how bytes land on disk. Apps (and tests) provide
implementations of these interfaces.
"""

from pathlib import Path
from typing import TYPE_CHECKING
from typing import Protocol
from typing import runtime_checkable

from .schema import PackageIdentity
from .schema import PackageSource
from .schema import ResolutionContext
from .schema import SourcePackageInfo

if TYPE_CHECKING:
    from .project import InstallationTarget


@runtime_checkable
class ConfigurationProtocol(Protocol):
    """Key/value configuration lookup (e.g., "Paths_Tools", "NuGet_Source")."""

    def get_value(self, key: str) -> str | None:
        """Get configuration value.

        Args:
            key: Configuration key (case-insensitive)

        Returns:
            Configured value, or None if not set
        """
        ...


@runtime_checkable
class PackageFeedProtocol(Protocol):
    """Metadata and content access for a single package source.

    Example implementations:
    - NuGetV3Feed: NuGet v3 HTTP service index
    - LocalFolderFeed: Directory of .nupkg files
    """

    def list_versions(self, package_id: str, framework: str) -> list[SourcePackageInfo]:
        """List versions of a package available from this source.

        Args:
            package_id: Package id (case-insensitive)
            framework: Target framework constraint ("any" for no constraint)

        Returns:
            Versions known to the source, listed or not. Empty if the package is unknown.

        Raises:
            PackageSourceError: If the source could not be queried
        """
        ...

    def download(self, identity: PackageIdentity, destination: Path) -> Path | None:
        """Download the package archive into destination directory.

        Returns:
            Path of the downloaded .nupkg, or None if the source doesn't have it

        Raises:
            PackageSourceError: If the source could not be reached
        """
        ...


class InstallActionProtocol(Protocol):
    """Fetch, unpack and register a resolved package into a target."""

    async def perform_install(
        self,
        identity: PackageIdentity,
        target: "InstallationTarget",
        context: ResolutionContext,
        sources: list[PackageSource],
    ) -> None:
        """Install identity into target.

        Raises:
            Exception: If installation fails
        """
        ...
