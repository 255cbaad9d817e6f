"""Tests for per-category content scoping."""

from pathlib import PurePosixPath

from nuget_installer import PackageType
from nuget_installer import resolve_content
from nuget_installer.content import is_package_metadata
from nuget_installer.content import select_lib_folder


def _paths(*names):
    return [PurePosixPath(name) for name in names]


FILES = _paths(
    "Foo.nuspec",
    "Foo.1.0.0.nupkg",
    "[Content_Types].xml",
    "_rels/.rels",
    "lib/net462/Foo.dll",
    "lib/net8.0/Foo.dll",
    "lib/net8.0/Foo.xml",
    "lib/netstandard2.0/Foo.dll",
    "lib/netstandard2.1/Foo.dll",
    "tools/foo.exe",
    "tools/foo.exe.config",
)


def test_is_package_metadata():
    """Test packaging metadata detection."""
    assert is_package_metadata(PurePosixPath("[Content_Types].xml"))
    assert is_package_metadata(PurePosixPath("_rels/.rels"))
    assert is_package_metadata(PurePosixPath("package/services/metadata/core-properties/x.psmdcp"))
    assert is_package_metadata(PurePosixPath("Foo.nuspec"))
    assert not is_package_metadata(PurePosixPath("tools/foo.exe"))


def test_tool_gets_all_content():
    """Test tools get every non-metadata file."""
    files = resolve_content(FILES, PackageType.TOOL, "any")

    assert files == sorted(
        _paths(
            "lib/net462/Foo.dll",
            "lib/net8.0/Foo.dll",
            "lib/net8.0/Foo.xml",
            "lib/netstandard2.0/Foo.dll",
            "lib/netstandard2.1/Foo.dll",
            "tools/foo.exe",
            "tools/foo.exe.config",
        )
    )


def test_addin_gets_exact_framework_assemblies():
    """Test addins get only assemblies of the matching framework."""
    assert resolve_content(FILES, PackageType.ADDIN, "net8.0") == _paths("lib/net8.0/Foo.dll")


def test_addin_falls_back_to_highest_netstandard():
    """Test netstandard fallback when no exact match exists."""
    assert resolve_content(FILES, PackageType.ADDIN, "net6.0") == _paths("lib/netstandard2.1/Foo.dll")


def test_module_any_framework():
    """Test modules (any framework) prefer netstandard."""
    assert resolve_content(FILES, PackageType.MODULE, "any") == _paths("lib/netstandard2.1/Foo.dll")


def test_lib_root_assemblies():
    """Test packages without lib subfolders."""
    files = _paths("lib/Foo.dll", "lib/readme.txt", "content/x.txt")

    assert resolve_content(files, PackageType.ADDIN, "net8.0") == _paths("lib/Foo.dll")


def test_no_assemblies():
    """Test tool-only packages yield nothing for addins."""
    assert resolve_content(_paths("tools/foo.exe"), PackageType.ADDIN, "net8.0") == []


def test_select_lib_folder():
    """Test folder selection order."""
    assert select_lib_folder([], "net8.0") is None
    assert select_lib_folder(["NET8.0", "netstandard2.0"], "net8.0") == "NET8.0"
    assert select_lib_folder(["netstandard1.6", "netstandard2.0"], "net8.0") == "netstandard2.0"
    assert select_lib_folder(["net48", "net462"], "net8.0") == "net462"
