"""Package installer data model.

Immutable pydantic models for everything that crosses a module boundary:
references supplied by callers, identities produced by resolution, entries
reported by feeds and the manifest embedded in a package archive.
"""

import xml.etree.ElementTree as ET
import zipfile
from enum import Enum
from pathlib import Path
from urllib.parse import unquote_plus

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator

from .exceptions import InvalidArgumentError
from .versioning import NuGetVersion
from .versioning import parse_version

ANY_FRAMEWORK = "any"


class PackageType(str, Enum):
    """Installation category: decides target framework and installed content."""

    ADDIN = "addin"
    TOOL = "tool"
    MODULE = "module"

    def target_framework(self, current_framework: str) -> str:
        """Framework used when listing versions for this category.

        Addins are loaded into the running host, so they must match its
        framework. Everything else accepts any framework.
        """
        return current_framework if self is PackageType.ADDIN else ANY_FRAMEWORK


class DependencyBehavior(str, Enum):
    """Which version of a dependency to prefer when several are compatible."""

    IGNORE = "ignore"
    LOWEST = "lowest"
    HIGHEST_PATCH = "highest_patch"
    HIGHEST_MINOR = "highest_minor"
    HIGHEST = "highest"


class VersionConstraints(str, Enum):
    """Which parts of an already installed version must be kept on update."""

    NONE = "none"
    EXACT_MAJOR = "exact_major"
    EXACT_MINOR = "exact_minor"
    EXACT_PATCH = "exact_patch"
    EXACT_RELEASE = "exact_release"


def _parse_bool(values: tuple[str, ...]) -> bool:
    # Flag given without a value counts as enabled
    if not values or not values[0].strip():
        return True
    return values[0].strip().lower() == "true"


class PackageReference(BaseModel):
    """
    Caller-supplied package descriptor, prior to resolution.

    URI form: ``nuget:[address]?package=<id>[&version=<v>][&prerelease[=<bool>]]``

    Parameter names are case-insensitive and stored lowercase.
    """

    model_config = ConfigDict(frozen=True)

    scheme: str
    package: str
    address: str | None = None
    parameters: dict[str, tuple[str, ...]] = Field(default_factory=dict)

    @field_validator("parameters", mode="before")
    @classmethod
    def normalize_parameters(cls, value: dict) -> dict[str, tuple[str, ...]]:
        normalized: dict[str, tuple[str, ...]] = {}
        for key, values in (value or {}).items():
            if isinstance(values, str):
                values = (values,)
            normalized[key.lower()] = normalized.get(key.lower(), ()) + tuple(values or ())
        return normalized

    @classmethod
    def parse(cls, uri: str) -> "PackageReference":
        """
        Parse a package reference URI.

        Args:
            uri: Reference string (e.g., "nuget:?package=Cake.Git&version=2.0.0")

        Returns:
            PackageReference instance

        Raises:
            InvalidArgumentError: If the URI has no scheme or no package parameter

        Example:
            >>> ref = PackageReference.parse("nuget:https://myget.org/F/x/api/v3/index.json?package=Foo&prerelease")
            >>> ref.address, ref.package, ref.include_prerelease
            ('https://myget.org/F/x/api/v3/index.json', 'Foo', True)
        """
        if not uri:
            raise InvalidArgumentError("Package reference is empty")

        scheme, separator, rest = uri.strip().partition(":")
        if not separator or not scheme:
            raise InvalidArgumentError(f"Package reference has no scheme: {uri}", context={"uri": uri})

        address, _, query = rest.partition("?")

        parameters: dict[str, list[str]] = {}
        for part in query.split("&"):
            if not part:
                continue
            key, has_value, value = part.partition("=")
            values = parameters.setdefault(unquote_plus(key).strip().lower(), [])
            if has_value:
                values.append(unquote_plus(value))

        package = parameters.pop("package", [])
        if not package or not package[0].strip():
            raise InvalidArgumentError(f"Package reference has no package id: {uri}", context={"uri": uri})

        return cls(
            scheme=scheme,
            package=package[0].strip(),
            address=address.strip() or None,
            parameters={key: tuple(values) for key, values in parameters.items()},
        )

    @property
    def version(self) -> str | None:
        """
        Explicit version parameter, if any.

        Raises:
            InvalidArgumentError: If the version parameter is given without a value
        """
        if "version" not in self.parameters:
            return None
        values = self.parameters["version"]
        if not values or not values[0].strip():
            raise InvalidArgumentError(
                f"Package reference for {self.package} has an empty version",
                context={"package": self.package},
            )
        return values[0].strip()

    @property
    def include_prerelease(self) -> bool:
        """Prerelease flag: absent is False, present without a value is True."""
        if "prerelease" not in self.parameters:
            return False
        return _parse_bool(self.parameters["prerelease"])

    def __str__(self) -> str:
        query = "&".join(
            [f"package={self.package}"] + [f"{key}={value}" for key, values in self.parameters.items() for value in values]
        )
        return f"{self.scheme}:{self.address or ''}?{query}"


class PackageIdentity(BaseModel):
    """A package id bound to one concrete version."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: str
    version: NuGetVersion

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version(cls, value):
        return value if isinstance(value, NuGetVersion) else parse_version(str(value))

    @property
    def key(self) -> str:
        """Case-insensitive lookup key (ids compare case-insensitively)."""
        return f"{self.id.lower()}/{self.version}"

    @property
    def directory_name(self) -> str:
        """Side-by-side folder name inside an installation root."""
        return f"{self.id}.{self.version}"

    def __str__(self) -> str:
        return f"{self.id} {self.version}"


class SourcePackageInfo(BaseModel):
    """One version of a package as reported by a source."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    version: NuGetVersion
    listed: bool = True

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version(cls, value):
        return value if isinstance(value, NuGetVersion) else parse_version(str(value))


class PackageSource(BaseModel):
    """A package source endpoint (v3 service index URL or local folder)."""

    model_config = ConfigDict(frozen=True)

    url: str
    name: str | None = None

    @property
    def is_local(self) -> bool:
        return not self.url.lower().startswith(("http://", "https://"))


class ResolutionContext(BaseModel):
    """Settings handed to the install action for one install."""

    model_config = ConfigDict(frozen=True)

    dependency_behavior: DependencyBehavior = DependencyBehavior.LOWEST
    include_prerelease: bool = False
    include_unlisted: bool = False
    version_constraints: VersionConstraints = VersionConstraints.NONE


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


class PackageManifest(BaseModel):
    """
    Package metadata from the .nuspec embedded in a .nupkg archive.

    Only the fields needed for validation and logging are kept.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    version: str
    description: str = ""
    authors: str = ""

    @classmethod
    def from_nuspec(cls, data: bytes) -> "PackageManifest":
        """
        Parse a .nuspec document.

        Args:
            data: Raw nuspec XML (any nuspec schema namespace)

        Returns:
            PackageManifest instance

        Raises:
            ValueError: If the XML is malformed or id/version are missing
        """
        try:
            root = ET.fromstring(data)
        except ET.ParseError as e:
            raise ValueError(f"Invalid nuspec XML: {e}") from e

        metadata = next((el for el in root if _local_name(el.tag) == "metadata"), None)
        if metadata is None:
            raise ValueError("nuspec has no <metadata> element")

        fields = {_local_name(el.tag): (el.text or "").strip() for el in metadata}
        if not fields.get("id") or not fields.get("version"):
            raise ValueError("nuspec metadata is missing id or version")

        return cls(
            id=fields["id"],
            version=fields["version"],
            description=fields.get("description", ""),
            authors=fields.get("authors", ""),
        )

    @classmethod
    def from_package(cls, package_file: Path) -> "PackageManifest":
        """
        Read the manifest from a .nupkg archive.

        Raises:
            ValueError: If the archive is not a zip or has no root-level .nuspec
        """
        try:
            with zipfile.ZipFile(package_file) as archive:
                nuspec = next((n for n in archive.namelist() if "/" not in n and n.lower().endswith(".nuspec")), None)
                if nuspec is None:
                    raise ValueError(f"No .nuspec found in {package_file.name}")
                return cls.from_nuspec(archive.read(nuspec))
        except zipfile.BadZipFile as e:
            raise ValueError(f"Not a valid package archive: {package_file.name}") from e

    def identity(self) -> PackageIdentity:
        return PackageIdentity(id=self.id, version=self.version)
