"""Installation target - One shared package folder per category.

Packages are laid out side by side inside the root:

    <root>/
      .nuget-installer.json        content index
      Cake.Git.2.0.0/
        Cake.Git.2.0.0.nupkg
        Cake.Git.nuspec
        lib/net8.0/Cake.Git.dll

A package counts as installed when its index entry exists and its .nupkg is
still on disk. Installing an installed package again replaces it in place.
"""

import logging
import shutil
import zipfile
from pathlib import Path
from pathlib import PurePosixPath
from urllib.parse import unquote

from .content import METADATA_DIRS
from .content import METADATA_FILES
from .content import resolve_content
from .exceptions import PackageInstallError
from .index import ContentIndex
from .index import ContentIndexEntry
from .schema import PackageIdentity
from .schema import PackageManifest
from .schema import PackageType
from .versioning import try_parse_version

logger = logging.getLogger(__name__)


def _archive_path(name: str) -> PurePosixPath:
    """Package-relative path of a zip entry; rejects entries escaping the package directory."""
    relative = PurePosixPath(unquote(name).replace("\\", "/"))
    if relative.is_absolute() or ".." in relative.parts or (relative.parts and ":" in relative.parts[0]):
        raise PackageInstallError(f"Package contains unsafe path: {name}", context={"entry": name})
    return relative


def _is_archive_metadata(relative: PurePosixPath) -> bool:
    if len(relative.parts) > 1:
        return relative.parts[0].lower() in METADATA_DIRS
    return relative.name.lower() in METADATA_FILES


class InstallationTarget:
    """
    Shared on-disk folder plus content index for one installation category.

    Categories installing into the same root must share one ContentIndex
    (InstallationTargetCache does this). The index lock guards on-disk state;
    hold it around any multi-step operation (check, download, install).
    """

    def __init__(
        self,
        root: Path,
        package_type: PackageType,
        framework: str,
        index: ContentIndex | None = None,
    ):
        self.root = root
        self.package_type = package_type
        self.framework = framework
        self.index = index if index is not None else ContentIndex(root)

    @property
    def lock(self):
        return self.index.lock

    def package_directory(self, identity: PackageIdentity) -> Path:
        return self.root / identity.directory_name

    def package_file(self, identity: PackageIdentity) -> Path:
        return self.package_directory(identity) / f"{identity.directory_name}.nupkg"

    def package_exists(self, identity: PackageIdentity) -> bool:
        return self.index.contains(identity)

    def _extract(self, package_file: Path, package_dir: Path) -> list[str]:
        files = []
        with zipfile.ZipFile(package_file) as archive:
            for info in archive.infolist():
                if info.is_dir():
                    continue
                relative = _archive_path(info.filename)
                if _is_archive_metadata(relative):
                    continue

                destination = package_dir.joinpath(*relative.parts)
                destination.parent.mkdir(parents=True, exist_ok=True)
                with archive.open(info) as src, open(destination, "wb") as dst:
                    shutil.copyfileobj(src, dst)
                files.append(relative.as_posix())
        return files

    def install_package(self, identity: PackageIdentity, package_file: Path, source: str) -> ContentIndexEntry:
        """
        Unpack a downloaded .nupkg into the target and register it.

        Args:
            identity: Package being installed
            package_file: Downloaded archive
            source: Source it came from (recorded in the index)

        Returns:
            Content index entry of the installed package

        Raises:
            PackageInstallError: If the archive is invalid, doesn't match identity, or can't be unpacked
        """
        with self.lock:
            try:
                manifest = PackageManifest.from_package(package_file)
            except ValueError as e:
                raise PackageInstallError(
                    f"Invalid package archive for {identity}: {e}",
                    context={"package_file": str(package_file)},
                ) from e

            if manifest.id.lower() != identity.id.lower() or try_parse_version(manifest.version) != identity.version:
                raise PackageInstallError(
                    f"Package archive contains {manifest.id} {manifest.version}, expected {identity}",
                    context={"package_file": str(package_file), "source": source},
                )

            package_dir = self.package_directory(identity)
            if package_dir.exists():
                logger.debug(f"Replacing existing package directory {package_dir}")
                shutil.rmtree(package_dir)

            try:
                package_dir.mkdir(parents=True)
                files = self._extract(package_file, package_dir)
                shutil.copy2(package_file, self.package_file(identity))
            except Exception as e:
                shutil.rmtree(package_dir, ignore_errors=True)
                if isinstance(e, PackageInstallError):
                    raise
                raise PackageInstallError(
                    f"Failed to unpack {identity}: {e}",
                    context={"package_dir": str(package_dir)},
                ) from e

            entry = self.index.record(identity, source=source, files=files)
            logger.info(f"Installed {identity} to {package_dir}")
            return entry

    def get_files(self, identity: PackageIdentity, package_type: PackageType | None = None) -> list[Path]:
        """
        Installed files of a package, scoped to a category.

        Args:
            identity: Installed package
            package_type: Category whose content rules apply (defaults to the target's)

        Returns:
            Absolute file paths, empty if the package isn't installed
        """
        entry = self.index.entry(identity)
        if entry is None:
            return []

        selected = resolve_content(self.index.files(identity), package_type or self.package_type, self.framework)
        package_dir = self.root / entry.path
        return [package_dir.joinpath(*f.parts) for f in selected]

    def uninstall_package(self, identity: PackageIdentity) -> None:
        """Remove a package directory and its index entry (no-op if absent)."""
        with self.lock:
            package_dir = self.package_directory(identity)
            if package_dir.exists():
                shutil.rmtree(package_dir)
            self.index.forget(identity)
            logger.info(f"Uninstalled {identity} from {self.root}")
