"""nuget-installer - Resolve and install NuGet packages into shared per-category folders.

Public API exports.

This is library mechanism: apps inject policy (working directory, configuration,
package sources, installation roots).
"""

from .cache import InstallationTargetCache
from .config import DEFAULT_SOURCE
from .config import EnvironmentConfiguration
from .config import InstallerSettings
from .config import MappingConfiguration
from .config import load_nuget_config_sources
from .content import resolve_content
from .exceptions import ConfigurationConflictError
from .exceptions import InstallerError
from .exceptions import InvalidArgumentError
from .exceptions import PackageInstallError
from .exceptions import PackageSourceError
from .feeds import LocalFolderFeed
from .feeds import NuGetV3Feed
from .feeds import create_feed
from .index import ContentIndex
from .index import ContentIndexEntry
from .installer import PackageInstaller
from .orchestrator import FeedInstallAction
from .orchestrator import InstallOrchestrator
from .project import InstallationTarget
from .protocols import ConfigurationProtocol
from .protocols import InstallActionProtocol
from .protocols import PackageFeedProtocol
from .resolver import VersionResolver
from .schema import ANY_FRAMEWORK
from .schema import DependencyBehavior
from .schema import PackageIdentity
from .schema import PackageManifest
from .schema import PackageReference
from .schema import PackageSource
from .schema import PackageType
from .schema import ResolutionContext
from .schema import SourcePackageInfo
from .schema import VersionConstraints
from .sources import build_source_list
from .utils import make_absolute
from .versioning import NuGetVersion

__all__ = [
    # Entry point
    "PackageInstaller",
    # Model
    "PackageReference",
    "PackageType",
    "PackageIdentity",
    "PackageSource",
    "SourcePackageInfo",
    "PackageManifest",
    "ResolutionContext",
    "DependencyBehavior",
    "VersionConstraints",
    "ANY_FRAMEWORK",
    "NuGetVersion",
    # Configuration
    "InstallerSettings",
    "MappingConfiguration",
    "EnvironmentConfiguration",
    "load_nuget_config_sources",
    "DEFAULT_SOURCE",
    # Sources and resolution
    "build_source_list",
    "VersionResolver",
    "NuGetV3Feed",
    "LocalFolderFeed",
    "create_feed",
    # Installation
    "InstallationTargetCache",
    "InstallationTarget",
    "InstallOrchestrator",
    "FeedInstallAction",
    "ContentIndex",
    "ContentIndexEntry",
    "resolve_content",
    # Protocols
    "ConfigurationProtocol",
    "PackageFeedProtocol",
    "InstallActionProtocol",
    # Exceptions
    "InstallerError",
    "InvalidArgumentError",
    "ConfigurationConflictError",
    "PackageInstallError",
    "PackageSourceError",
    # Utilities
    "make_absolute",
]

__version__ = "0.1.0"
