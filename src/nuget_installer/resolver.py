"""Version resolution - Pick the concrete version to install.

Sources are queried strictly in order and the first source with any
acceptable version wins, even if a later source has a newer one. Versions
are never aggregated across sources.

Not finding a version is not an error: resolve() returns None and the
caller decides whether "nothing to install" is acceptable.
"""

import logging
from collections.abc import Callable

from .feeds import create_feed
from .protocols import PackageFeedProtocol
from .schema import PackageIdentity
from .schema import PackageReference
from .schema import PackageSource
from .versioning import is_prerelease
from .versioning import parse_version

logger = logging.getLogger(__name__)

FeedFactory = Callable[[PackageSource], PackageFeedProtocol]


class VersionResolver:
    """
    Resolve package references to identities (with injected feed factory).

    Apps inject the feed factory so sources can be backed by anything
    implementing PackageFeedProtocol.
    """

    def __init__(self, feed_factory: FeedFactory = create_feed):
        self.feed_factory = feed_factory

    def resolve(
        self,
        reference: PackageReference,
        sources: list[PackageSource],
        framework: str,
    ) -> PackageIdentity | None:
        """
        Resolve reference to a concrete package identity.

        Resolution order:
        1. Explicit version parameter - trusted verbatim, no source is queried
        2. Sources in order - highest listed version (stable unless prerelease
           is requested) from the first source that has one

        Args:
            reference: Package reference
            sources: Ordered source list
            framework: Target framework constraint for listing

        Returns:
            Resolved identity, or None if no source has an acceptable version

        Raises:
            InvalidArgumentError: If the explicit version can't be parsed
            PackageSourceError: If a source can't be queried
        """
        if reference.version is not None:
            identity = PackageIdentity(id=reference.package, version=parse_version(reference.version))
            logger.debug(f"Using explicit version {identity}")
            return identity

        include_prerelease = reference.include_prerelease

        for source in sources:
            feed = self.feed_factory(source)
            candidates = [
                info.version
                for info in feed.list_versions(reference.package, framework)
                if info.listed and (include_prerelease or not is_prerelease(info.version))
            ]
            if candidates:
                identity = PackageIdentity(id=reference.package, version=max(candidates))
                logger.debug(f"Resolved {identity} from {source.url}")
                return identity

            logger.debug(f"No acceptable version of {reference.package} in {source.url}")

        logger.debug(
            f"No acceptable version of {reference.package} found in {len(sources)} source(s) "
            f"(prerelease={include_prerelease}, framework={framework})"
        )
        return None
