"""Package installer - Caller-facing entry point.

Ties the pieces together for one install:
1. Make the destination absolute and get the category's shared target
   (a root mismatch fails here, before any network activity)
2. Build the source list
3. Resolve the version (nothing found -> empty result, not an error)
4. Install and report the category's files

Mechanism not policy: apps inject settings, configuration, feeds and the
target cache; nothing here reads global state.
"""

import logging
from pathlib import Path

from .cache import InstallationTargetCache
from .config import InstallerSettings
from .exceptions import InvalidArgumentError
from .feeds import create_feed
from .orchestrator import FeedInstallAction
from .orchestrator import InstallOrchestrator
from .protocols import ConfigurationProtocol
from .resolver import FeedFactory
from .resolver import VersionResolver
from .schema import PackageReference
from .schema import PackageType
from .sources import build_source_list
from .utils import make_absolute

logger = logging.getLogger(__name__)

SCHEME = "nuget"


class PackageInstaller:
    """
    Install "nuget:" package references into per-category shared folders.

    Example:
        >>> installer = PackageInstaller(
        ...     settings=InstallerSettings.from_configuration(config, working_directory=Path.cwd()),
        ...     configuration=config,
        ... )
        >>> files = installer.install(
        ...     PackageReference.parse("nuget:?package=Cake.Git&version=2.0.0"),
        ...     PackageType.ADDIN,
        ...     Path("tools/Addins"),
        ... )
    """

    def __init__(
        self,
        settings: InstallerSettings,
        configuration: ConfigurationProtocol,
        feed_factory: FeedFactory | None = None,
        target_cache: InstallationTargetCache | None = None,
        orchestrator: InstallOrchestrator | None = None,
    ):
        self.settings = settings
        self.configuration = configuration
        self.feed_factory = feed_factory or self._default_feed_factory
        self.target_cache = target_cache or InstallationTargetCache()
        self.resolver = VersionResolver(feed_factory=self.feed_factory)
        self.orchestrator = orchestrator or InstallOrchestrator(FeedInstallAction(feed_factory=self.feed_factory))

    def _default_feed_factory(self, source):
        return create_feed(source, timeout=self.settings.request_timeout)

    def can_install(self, reference: PackageReference, package_type: PackageType) -> bool:
        """
        Check if this installer handles the reference.

        Raises:
            InvalidArgumentError: If reference is None
        """
        if reference is None:
            raise InvalidArgumentError("reference is required")
        return reference.scheme.lower() == SCHEME

    def install(self, reference: PackageReference, package_type: PackageType, path: Path | str) -> list[Path]:
        """
        Resolve and install a package.

        Args:
            reference: Package reference
            package_type: Installation category
            path: Installation root (relative paths resolve against the working directory)

        Returns:
            Installed files relevant to the category; empty if no acceptable version was found

        Raises:
            InvalidArgumentError: If reference or path is None
            ConfigurationConflictError: If the category was installed to a different root before
            PackageInstallError: If fetching or unpacking fails
        """
        if reference is None:
            raise InvalidArgumentError("reference is required")
        if path is None:
            raise InvalidArgumentError("path is required")

        package_root = make_absolute(path, self.settings.working_directory)
        framework = package_type.target_framework(self.settings.target_framework)
        target = self.target_cache.get_or_create(package_type, package_root, framework)

        sources = build_source_list(self.settings, self.configuration, reference, package_root)
        logger.debug(f"Package sources for {reference.package}: {[s.url for s in sources]}")

        identity = self.resolver.resolve(reference, sources, framework)
        if identity is None:
            logger.warning(f"Could not find any acceptable version of {reference.package}")
            return []

        return self.orchestrator.install(identity, target, sources, reference.include_prerelease)
