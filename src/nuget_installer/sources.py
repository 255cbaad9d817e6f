"""Package source list construction.

Source order is observable: the first source with an acceptable version wins
resolution, so the order built here is part of version selection semantics.

Order:
1. Source named on the reference itself (its address)
2. "NuGet_Source" configuration value (";"-separated)
3. Sources from settings (NuGet.config in the tool path)
4. The default public feed, only when nothing else is configured
"""

import logging
from pathlib import Path

from .config import SOURCE_KEY
from .config import InstallerSettings
from .protocols import ConfigurationProtocol
from .schema import PackageReference
from .schema import PackageSource
from .utils import make_absolute

logger = logging.getLogger(__name__)


def _is_remote(url: str) -> bool:
    return url.lower().startswith(("http://", "https://"))


def _source_key(url: str) -> str:
    if _is_remote(url):
        return url.rstrip("/").lower()
    return str(Path(url))


def build_source_list(
    settings: InstallerSettings,
    configuration: ConfigurationProtocol,
    reference: PackageReference,
    package_root: Path,
) -> list[PackageSource]:
    """
    Build the ordered, deduplicated source list for one install.

    Args:
        settings: Installer settings (settings sources, default source)
        configuration: Configuration provider ("NuGet_Source")
        reference: Package reference (its address overrides/extends sources)
        package_root: Absolute installation root; relative local sources resolve against it

    Returns:
        Sources in query order, never empty

    Example:
        >>> sources = build_source_list(settings, MappingConfiguration(), PackageReference.parse("nuget:?package=Foo"), root)
        >>> [s.url for s in sources]
        ['https://api.nuget.org/v3/index.json']
    """
    candidates: list[str] = []

    if reference.address:
        candidates.append(reference.address)

    configured = configuration.get_value(SOURCE_KEY)
    if configured:
        candidates.extend(configured.split(";"))

    candidates.extend(settings.sources)

    sources: list[PackageSource] = []
    seen: set[str] = set()
    for candidate in candidates:
        url = candidate.strip()
        if not url:
            continue
        if not _is_remote(url):
            url = str(make_absolute(url, package_root))

        key = _source_key(url)
        if key in seen:
            logger.debug(f"Skipping duplicate package source: {url}")
            continue
        seen.add(key)
        sources.append(PackageSource(url=url))

    if not sources:
        logger.debug(f"No package sources configured, using {settings.default_source}")
        sources.append(PackageSource(url=settings.default_source, name="nuget.org"))

    return sources
