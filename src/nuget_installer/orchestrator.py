"""Install orchestration - Drive one resolved package onto disk.

The install action is async and cancellable (cancel the task awaiting
install_async). install() is the blocking boundary for build steps that must
not continue until the package is on disk; it offers no cancellation.
"""

import asyncio
import logging
import tempfile
from collections.abc import Callable
from pathlib import Path

from .exceptions import InstallerError
from .exceptions import PackageInstallError
from .feeds import create_feed
from .project import InstallationTarget
from .protocols import InstallActionProtocol
from .protocols import PackageFeedProtocol
from .schema import DependencyBehavior
from .schema import PackageIdentity
from .schema import PackageSource
from .schema import ResolutionContext
from .schema import VersionConstraints

logger = logging.getLogger(__name__)


class FeedInstallAction:
    """
    Default install action: download from the first source that has the package.

    Already installed packages are left untouched.
    """

    def __init__(self, feed_factory: Callable[[PackageSource], PackageFeedProtocol] = create_feed):
        self.feed_factory = feed_factory

    async def perform_install(
        self,
        identity: PackageIdentity,
        target: InstallationTarget,
        context: ResolutionContext,
        sources: list[PackageSource],
    ) -> None:
        if target.package_exists(identity):
            logger.debug(f"{identity} already installed in {target.root}")
            return

        with tempfile.TemporaryDirectory(prefix="nuget-installer-") as tmpdir:
            for source in sources:
                feed = self.feed_factory(source)
                package_file = await asyncio.to_thread(feed.download, identity, Path(tmpdir))
                if package_file is None:
                    logger.debug(f"{identity} not available from {source.url}")
                    continue

                # Caller's thread: target.lock may already be held by it
                target.install_package(identity, package_file, source.url)
                return

        raise PackageInstallError(
            f"Package {identity} could not be downloaded from any source",
            context={"package": identity.id, "version": str(identity.version), "sources": [s.url for s in sources]},
        )


class InstallOrchestrator:
    """
    Perform the install of one resolved identity into one target.

    Resolution context is fixed apart from prerelease: lowest compatible
    dependency versions, no version constraints.
    """

    def __init__(self, install_action: InstallActionProtocol | None = None):
        self.install_action = install_action or FeedInstallAction()

    @staticmethod
    def create_context(include_prerelease: bool) -> ResolutionContext:
        return ResolutionContext(
            dependency_behavior=DependencyBehavior.LOWEST,
            include_prerelease=include_prerelease,
            version_constraints=VersionConstraints.NONE,
        )

    async def install_async(
        self,
        identity: PackageIdentity,
        target: InstallationTarget,
        sources: list[PackageSource],
        include_prerelease: bool = False,
    ) -> list[Path]:
        """
        Install identity into target and report its files.

        Callers sharing a target across threads must hold target.lock.

        Returns:
            Installed files relevant to the target's category

        Raises:
            PackageInstallError: If fetch or unpack fails (cause chained)
        """
        context = self.create_context(include_prerelease)
        logger.info(f"Installing {identity} into {target.root}")

        try:
            await self.install_action.perform_install(identity, target, context, sources)
        except InstallerError:
            raise
        except Exception as e:
            raise PackageInstallError(f"Failed to install {identity}: {e}", context={"package": identity.id}) from e

        files = target.get_files(identity, target.package_type)
        logger.debug(f"{identity}: {len(files)} {target.package_type.value} file(s)")
        return files

    def install(
        self,
        identity: PackageIdentity,
        target: InstallationTarget,
        sources: list[PackageSource],
        include_prerelease: bool = False,
    ) -> list[Path]:
        """
        Blocking install. Holds the target lock until the package is on disk.

        Must not be called from a running event loop; use install_async there.
        """
        with target.lock:
            return asyncio.run(self.install_async(identity, target, sources, include_prerelease))
