"""Package version parsing and precedence.

NuGet versions are SemVer 2.0 plus two legacy shapes: short versions ("1.0")
and four-part versions ("1.2.3.4"). The fourth part is the revision; it
orders between patch and the prerelease label, and a revision of 0 is the
same version as the three-part form.
"""

import re

import semantic_version

from .exceptions import InvalidArgumentError

FOUR_PART_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)\.(\d+)((?:-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?)$")


class NuGetVersion(semantic_version.Version):
    """Semantic version with a NuGet revision component."""

    def __init__(self, version_string=None, revision: int = 0, **kwargs):
        # Precedence keys are built in the base __init__
        self.revision = revision
        super().__init__(version_string, **kwargs)

    def _build_precedence_key(self, with_build=False):
        key = super()._build_precedence_key(with_build=with_build)
        return key[:3] + (self.revision,) + key[3:]

    def __eq__(self, other):
        if not isinstance(other, semantic_version.Version):
            return NotImplemented
        return tuple(self) == tuple(other) and self.revision == getattr(other, "revision", 0)

    def __ne__(self, other):
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    def __hash__(self):
        return hash((self.major, self.minor, self.patch, self.revision, self.prerelease, self.build))

    def __str__(self):
        release = f"{self.major}.{self.minor}.{self.patch}"
        if self.revision:
            release = f"{release}.{self.revision}"
        if self.prerelease:
            release = f"{release}-{'.'.join(self.prerelease)}"
        if self.build:
            release = f"{release}+{'.'.join(self.build)}"
        return release


def parse_version(text: str) -> NuGetVersion:
    """Parse a package version string.

    Args:
        text: Version string (e.g., "1.2.3", "2.0.0-beta.1", "1.0", "1.2.3.4")

    Returns:
        Parsed version

    Raises:
        InvalidArgumentError: If text is not a recognizable version
    """
    candidate = str(text).strip() if text is not None else ""
    if not candidate:
        raise InvalidArgumentError("Version string is empty", context={"version": text})

    match = FOUR_PART_RE.match(candidate)
    if match:
        major, minor, patch, revision, suffix = match.groups()
        try:
            return NuGetVersion(f"{int(major)}.{int(minor)}.{int(patch)}{suffix}", revision=int(revision))
        except ValueError as e:
            raise InvalidArgumentError(f"Invalid package version '{text}': {e}", context={"version": text}) from e

    try:
        return NuGetVersion(candidate)
    except ValueError:
        pass

    try:
        return NuGetVersion(str(semantic_version.Version.coerce(candidate)))
    except ValueError as e:
        raise InvalidArgumentError(f"Invalid package version '{text}': {e}", context={"version": text}) from e


def try_parse_version(text: str) -> NuGetVersion | None:
    """Parse a version string, returning None instead of raising."""
    try:
        return parse_version(text)
    except InvalidArgumentError:
        return None


def is_prerelease(version: semantic_version.Version) -> bool:
    """Check if version carries a prerelease label."""
    return bool(version.prerelease)


def normalize_version(version: NuGetVersion) -> str:
    """Normalized lowercase version used in feed URLs: no build metadata, revision only when non-zero."""
    release = f"{version.major}.{version.minor}.{version.patch}"
    if getattr(version, "revision", 0):
        release = f"{release}.{version.revision}"
    if version.prerelease:
        release = f"{release}-{'.'.join(version.prerelease)}"
    return release.lower()
