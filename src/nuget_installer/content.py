"""Package content scoping - Which installed files a category cares about.

Convention over configuration, based on the standard package layout:
- Tools get every file the package ships (executables, scripts, configs)
- Addins and modules get the assemblies of the best matching lib/<framework>/ folder

Packaging metadata ([Content_Types].xml, _rels/, package/, .nuspec, .nupkg)
is never returned.
"""

import re
from pathlib import PurePosixPath

from .schema import ANY_FRAMEWORK
from .schema import PackageType

METADATA_FILES = {"[content_types].xml"}
METADATA_DIRS = {"_rels", "package"}
METADATA_SUFFIXES = (".nuspec", ".nupkg")
ASSEMBLY_SUFFIX = ".dll"


def is_package_metadata(path: PurePosixPath) -> bool:
    """Check if a package-relative path is packaging metadata rather than content."""
    if len(path.parts) > 1:
        return path.parts[0].lower() in METADATA_DIRS
    name = path.name.lower()
    return name in METADATA_FILES or name.endswith(METADATA_SUFFIXES)


def _framework_version(folder: str) -> tuple[int, ...]:
    return tuple(int(part) for part in re.findall(r"\d+", folder))


def select_lib_folder(folders: list[str], framework: str) -> str | None:
    """
    Pick the lib/ subfolder to load assemblies from.

    Preference: exact framework match, highest netstandard, first folder by name.

    Example:
        >>> select_lib_folder(["net462", "netstandard2.0", "netstandard2.1"], "net8.0")
        'netstandard2.1'
    """
    if not folders:
        return None

    if framework != ANY_FRAMEWORK:
        for folder in folders:
            if folder.lower() == framework.lower():
                return folder

    netstandard = [f for f in folders if f.lower().startswith("netstandard")]
    if netstandard:
        return max(netstandard, key=_framework_version)

    return sorted(folders)[0]


def _assemblies(files: list[PurePosixPath], framework: str) -> list[PurePosixPath]:
    lib_files = [f for f in files if len(f.parts) >= 2 and f.parts[0].lower() == "lib"]
    folders = sorted({f.parts[1] for f in lib_files if len(f.parts) >= 3})
    folder = select_lib_folder(folders, framework)

    if folder is None:
        chosen = [f for f in lib_files if len(f.parts) == 2]
    else:
        chosen = [f for f in lib_files if len(f.parts) >= 3 and f.parts[1] == folder]

    return sorted(f for f in chosen if f.suffix.lower() == ASSEMBLY_SUFFIX)


def resolve_content(
    files: list[PurePosixPath],
    package_type: PackageType,
    framework: str,
) -> list[PurePosixPath]:
    """
    Select the files of an installed package relevant to a category.

    Args:
        files: Package files, relative to the package directory
        package_type: Installation category
        framework: Target framework ("any" for no constraint)

    Returns:
        Sorted package-relative paths
    """
    if package_type is PackageType.TOOL:
        return sorted(f for f in files if not is_package_metadata(f))

    return _assemblies(files, framework)
