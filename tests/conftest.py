"""Shared fixtures: build real .nupkg archives on disk."""

import zipfile
from pathlib import Path

import pytest

NUSPEC_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<package xmlns="http://schemas.microsoft.com/packaging/2013/05/nuspec.xsd">
  <metadata>
    <id>{id}</id>
    <version>{version}</version>
    <authors>test</authors>
    <description>Test package</description>
  </metadata>
</package>
"""


def build_nupkg(directory: Path, package_id: str, version: str, files: dict[str, bytes] | None = None) -> Path:
    """Write <directory>/<id>.<version>.nupkg with packaging metadata and the given content."""
    if files is None:
        files = {
            f"lib/net8.0/{package_id}.dll": b"net8",
            f"lib/netstandard2.0/{package_id}.dll": b"netstandard",
            f"tools/{package_id}.exe": b"exe",
        }

    directory.mkdir(parents=True, exist_ok=True)
    package_file = directory / f"{package_id}.{version}.nupkg"
    with zipfile.ZipFile(package_file, "w") as archive:
        archive.writestr(f"{package_id}.nuspec", NUSPEC_TEMPLATE.format(id=package_id, version=version))
        archive.writestr("[Content_Types].xml", "<Types />")
        archive.writestr("_rels/.rels", "<Relationships />")
        archive.writestr("package/services/metadata/core-properties/abc.psmdcp", "<coreProperties />")
        for name, content in files.items():
            archive.writestr(name, content)
    return package_file


@pytest.fixture
def nupkg_factory():
    """Factory fixture: nupkg_factory(directory, id, version, files=None) -> Path."""
    return build_nupkg
