"""Tests for version parsing."""

import pytest
import semantic_version
from nuget_installer import InvalidArgumentError
from nuget_installer.versioning import is_prerelease
from nuget_installer.versioning import normalize_version
from nuget_installer.versioning import parse_version
from nuget_installer.versioning import try_parse_version


def test_parse_strict_and_legacy_versions():
    """Test strict SemVer and short legacy versions."""
    assert parse_version("1.2.3") == semantic_version.Version("1.2.3")
    assert parse_version(" 1.0 ") == semantic_version.Version("1.0.0")


def test_prerelease_precedence():
    """Test prerelease sorts before its release."""
    assert parse_version("1.0.0-beta") < parse_version("1.0.0")
    assert parse_version("1.0.0-alpha") < parse_version("1.0.0-beta")
    assert is_prerelease(parse_version("1.0.0-rc.1"))
    assert not is_prerelease(parse_version("1.0.0"))


def test_invalid_versions():
    """Test unparseable versions."""
    with pytest.raises(InvalidArgumentError):
        parse_version("not-a-version")

    with pytest.raises(ValueError):
        parse_version("")

    assert try_parse_version("latest") is None


def test_normalize_version():
    """Test URL normalization drops build metadata and lowercases."""
    assert normalize_version(parse_version("1.0.0-Beta+build.5")) == "1.0.0-beta"


def test_four_part_revision_orders_between_patch_and_next():
    """Test the revision part takes part in precedence."""
    assert parse_version("1.2.3.4") < parse_version("1.2.3.5")
    assert parse_version("1.2.3") < parse_version("1.2.3.1")
    assert parse_version("1.2.3.9") < parse_version("1.2.4")
    assert parse_version("1.2.3.4-beta") < parse_version("1.2.3.4")
    assert max(parse_version(v) for v in ["1.2.3.4", "1.2.3.10", "1.2.3.5"]) == parse_version("1.2.3.10")


def test_four_part_equality_and_hashing():
    """Test revision 0 is the three-part version and other revisions are distinct."""
    assert parse_version("1.2.3.0") == parse_version("1.2.3")
    assert parse_version("1.2.3.4") != parse_version("1.2.3")
    assert parse_version("1.2.3.4") != semantic_version.Version("1.2.3+4")
    assert len({parse_version("1.2.3.4"), parse_version("1.2.3.4"), parse_version("1.2.3.5")}) == 2


def test_four_part_string_forms():
    """Test the four-part form is kept in string and URL forms."""
    assert str(parse_version("1.2.3.4")) == "1.2.3.4"
    assert str(parse_version("1.2.3.0")) == "1.2.3"
    assert str(parse_version("01.2.3.4-RC.1")) == "1.2.3.4-RC.1"
    assert normalize_version(parse_version("1.2.3.4")) == "1.2.3.4"
    assert normalize_version(parse_version("1.2.3.4-RC.1+sha.abc")) == "1.2.3.4-rc.1"
    assert normalize_version(parse_version("1.2.3.0")) == "1.2.3"
