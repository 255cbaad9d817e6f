"""Package feeds: per-source metadata and content access.

Two kinds of source are supported:
- NuGet v3 HTTP feeds (service index URL)
- Local folders containing .nupkg files (flat or hierarchical layout)

Feeds are synchronous; the async install action runs them in worker threads.
"""

import logging
import shutil
from pathlib import Path
from urllib.parse import quote

import requests

from .exceptions import PackageSourceError
from .schema import PackageIdentity
from .schema import PackageManifest
from .schema import PackageSource
from .schema import SourcePackageInfo
from .versioning import normalize_version
from .versioning import try_parse_version

logger = logging.getLogger(__name__)

REGISTRATION_RESOURCE_TYPES = (
    "RegistrationsBaseUrl/3.6.0",
    "RegistrationsBaseUrl/3.4.0",
    "RegistrationsBaseUrl/3.0.0-rc",
    "RegistrationsBaseUrl",
)
PACKAGE_BASE_ADDRESS_TYPE = "PackageBaseAddress/3.0.0"
DOWNLOAD_CHUNK_SIZE = 64 * 1024


class NuGetV3Feed:
    """
    NuGet v3 protocol feed.

    Uses the registration resource to list versions (with their listed
    state) and the flat container (PackageBaseAddress) to download.
    The service index is fetched once per feed instance.
    """

    def __init__(self, url: str, session: requests.Session | None = None, timeout: float = 30.0):
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout
        self._resources: dict[str, str] | None = None

    def _get(self, url: str, **kwargs) -> requests.Response | None:
        """GET url, returning None on 404 and raising PackageSourceError on any other failure."""
        try:
            response = self.session.get(url, timeout=self.timeout, **kwargs)
            if response.status_code == 404:
                return None
            response.raise_for_status()
            return response
        except requests.RequestException as e:
            raise PackageSourceError(
                f"Request to package source failed: {e}",
                context={"source": self.url, "url": url},
            ) from e

    def _get_json(self, url: str) -> dict | None:
        response = self._get(url, headers={"Accept": "application/json"})
        if response is None:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise PackageSourceError(
                f"Package source returned invalid JSON: {url}",
                context={"source": self.url, "url": url},
            ) from e

    def _resource(self, *resource_types: str) -> str:
        if self._resources is None:
            index = self._get_json(self.url)
            if index is None:
                raise PackageSourceError(f"Service index not found: {self.url}", context={"source": self.url})
            self._resources = {}
            for resource in index.get("resources", []):
                self._resources.setdefault(resource.get("@type", ""), resource.get("@id", ""))
            logger.debug(f"Loaded service index for {self.url} ({len(self._resources)} resources)")

        for resource_type in resource_types:
            if self._resources.get(resource_type):
                return self._resources[resource_type].rstrip("/") + "/"

        raise PackageSourceError(
            f"Package source {self.url} does not provide {resource_types[0]}",
            context={"source": self.url},
        )

    def list_versions(self, package_id: str, framework: str) -> list[SourcePackageInfo]:
        """List versions from the registration index (framework is not used for filtering)."""
        base = self._resource(*REGISTRATION_RESOURCE_TYPES)
        registration = self._get_json(f"{base}{quote(package_id.lower(), safe='')}/index.json")
        if registration is None:
            return []

        versions: list[SourcePackageInfo] = []
        for page in registration.get("items", []):
            leaves = page.get("items")
            if leaves is None:
                # Large packages have out-of-line pages
                page_data = self._get_json(page["@id"]) or {}
                leaves = page_data.get("items", [])

            for leaf in leaves:
                entry = leaf.get("catalogEntry", {})
                version = try_parse_version(entry.get("version", ""))
                if version is None:
                    logger.debug(f"Skipping unparseable version '{entry.get('version')}' of {package_id}")
                    continue
                versions.append(SourcePackageInfo(version=version, listed=entry.get("listed", True)))

        logger.debug(f"{self.url}: {len(versions)} versions of {package_id}")
        return versions

    def download(self, identity: PackageIdentity, destination: Path) -> Path | None:
        """Download the .nupkg from the flat container into destination."""
        base = self._resource(PACKAGE_BASE_ADDRESS_TYPE)
        package_id = identity.id.lower()
        version = normalize_version(identity.version)
        file_name = f"{package_id}.{version}.nupkg"

        response = self._get(f"{base}{quote(package_id, safe='')}/{version}/{file_name}", stream=True)
        if response is None:
            return None

        destination.mkdir(parents=True, exist_ok=True)
        package_file = destination / file_name
        try:
            with response, open(package_file, "wb") as f:
                for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    f.write(chunk)
        except requests.RequestException as e:
            raise PackageSourceError(
                f"Download of {identity} failed: {e}",
                context={"source": self.url, "package": identity.id},
            ) from e

        logger.debug(f"Downloaded {identity} from {self.url}")
        return package_file


class LocalFolderFeed:
    """
    Folder of .nupkg files.

    Supports flat (folder/*.nupkg) and hierarchical (folder/id/version/*.nupkg)
    layouts. Package id and version come from the embedded .nuspec, never the
    file name. Every package is considered listed.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _packages(self) -> list[tuple[PackageManifest, Path]]:
        if not self.path.is_dir():
            logger.warning(f"Local package source does not exist: {self.path}")
            return []

        packages = []
        for package_file in sorted(self.path.rglob("*.nupkg")):
            try:
                packages.append((PackageManifest.from_package(package_file), package_file))
            except ValueError as e:
                logger.debug(f"Skipping {package_file}: {e}")
        return packages

    def list_versions(self, package_id: str, framework: str) -> list[SourcePackageInfo]:
        versions = []
        for manifest, _ in self._packages():
            if manifest.id.lower() != package_id.lower():
                continue
            version = try_parse_version(manifest.version)
            if version is not None:
                versions.append(SourcePackageInfo(version=version))
        return versions

    def download(self, identity: PackageIdentity, destination: Path) -> Path | None:
        for manifest, package_file in self._packages():
            if manifest.id.lower() == identity.id.lower() and try_parse_version(manifest.version) == identity.version:
                destination.mkdir(parents=True, exist_ok=True)
                return Path(shutil.copy2(package_file, destination / package_file.name))
        return None


def create_feed(
    source: PackageSource,
    session: requests.Session | None = None,
    timeout: float = 30.0,
) -> NuGetV3Feed | LocalFolderFeed:
    """Create the feed implementation matching a source."""
    if source.is_local:
        return LocalFolderFeed(Path(source.url))
    return NuGetV3Feed(source.url, session=session, timeout=timeout)
