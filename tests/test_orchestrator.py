"""Tests for install orchestration and the default feed install action."""

import pytest
from nuget_installer import DependencyBehavior
from nuget_installer import FeedInstallAction
from nuget_installer import InstallationTarget
from nuget_installer import InstallOrchestrator
from nuget_installer import LocalFolderFeed
from nuget_installer import PackageIdentity
from nuget_installer import PackageInstallError
from nuget_installer import PackageSource
from nuget_installer import PackageSourceError
from nuget_installer import PackageType
from nuget_installer import VersionConstraints

FOO = PackageIdentity(id="Foo", version="1.0.0")


class RecordingAction:
    """Install action that records its inputs and installs a prepared archive."""

    def __init__(self, package_file=None, error=None):
        self.package_file = package_file
        self.error = error
        self.calls = []

    async def perform_install(self, identity, target, context, sources):
        self.calls.append((identity, context, sources))
        if self.error is not None:
            raise self.error
        if self.package_file is not None:
            target.install_package(identity, self.package_file, source="recorded")


class CountingFeed:
    """Wraps a local folder feed and counts downloads."""

    def __init__(self, path):
        self.inner = LocalFolderFeed(path)
        self.downloads = 0

    def list_versions(self, package_id, framework):
        return self.inner.list_versions(package_id, framework)

    def download(self, identity, destination):
        self.downloads += 1
        return self.inner.download(identity, destination)


@pytest.fixture
def target(tmp_path):
    return InstallationTarget(tmp_path / "Addins", PackageType.ADDIN, "net8.0")


@pytest.mark.asyncio
async def test_install_builds_resolution_context(tmp_path, target, nupkg_factory):
    """Test context is fixed to lowest dependencies and no constraints."""
    action = RecordingAction(nupkg_factory(tmp_path / "downloads", "Foo", "1.0.0"))
    sources = [PackageSource(url="https://feed.test/v3/index.json")]

    files = await InstallOrchestrator(action).install_async(FOO, target, sources, include_prerelease=True)

    identity, context, passed_sources = action.calls[0]
    assert identity == FOO
    assert context.dependency_behavior == DependencyBehavior.LOWEST
    assert context.version_constraints == VersionConstraints.NONE
    assert context.include_prerelease is True
    assert passed_sources == sources
    assert files == [tmp_path / "Addins" / "Foo.1.0.0" / "lib" / "net8.0" / "Foo.dll"]


@pytest.mark.asyncio
async def test_install_failure_is_wrapped(target):
    """Test unexpected failures become PackageInstallError with the cause attached."""
    action = RecordingAction(error=OSError("disk full"))

    with pytest.raises(PackageInstallError, match="disk full") as exc_info:
        await InstallOrchestrator(action).install_async(FOO, target, [])

    assert isinstance(exc_info.value.__cause__, OSError)


@pytest.mark.asyncio
async def test_installer_errors_pass_through(target):
    """Test installer errors keep their type."""
    error = PackageSourceError("feed down")
    action = RecordingAction(error=error)

    with pytest.raises(PackageSourceError) as exc_info:
        await InstallOrchestrator(action).install_async(FOO, target, [])

    assert exc_info.value is error


def test_sync_install_blocks_until_done(tmp_path, target, nupkg_factory):
    """Test the blocking wrapper returns the installed files."""
    action = RecordingAction(nupkg_factory(tmp_path / "downloads", "Foo", "1.0.0"))

    files = InstallOrchestrator(action).install(FOO, target, [])

    assert len(files) == 1
    assert files[0].exists()


def test_feed_action_installs_from_first_source_having_package(tmp_path, target, nupkg_factory):
    """Test sources without the package are skipped."""
    empty = PackageSource(url=str(tmp_path / "empty"))
    full = PackageSource(url=str(tmp_path / "full"))
    (tmp_path / "empty").mkdir()
    nupkg_factory(tmp_path / "full", "Foo", "1.0.0")
    feeds = {empty.url: CountingFeed(tmp_path / "empty"), full.url: CountingFeed(tmp_path / "full")}
    orchestrator = InstallOrchestrator(FeedInstallAction(feed_factory=lambda source: feeds[source.url]))

    files = orchestrator.install(FOO, target, [empty, full])

    assert files == [target.package_directory(FOO) / "lib" / "net8.0" / "Foo.dll"]
    assert feeds[empty.url].downloads == 1
    assert feeds[full.url].downloads == 1
    assert target.index.entry(FOO).source == full.url


def test_feed_action_is_idempotent(tmp_path, target, nupkg_factory):
    """Test a second install doesn't download again and returns the same files."""
    source = PackageSource(url=str(tmp_path / "feed"))
    nupkg_factory(tmp_path / "feed", "Foo", "1.0.0")
    feed = CountingFeed(tmp_path / "feed")
    orchestrator = InstallOrchestrator(FeedInstallAction(feed_factory=lambda source: feed))

    first = orchestrator.install(FOO, target, [source])
    second = orchestrator.install(FOO, target, [source])

    assert first == second
    assert feed.downloads == 1
    assert len(target.index.entries()) == 1


def test_feed_action_package_missing_everywhere(tmp_path, target):
    """Test a resolved package no source can deliver is a hard failure."""
    (tmp_path / "feed").mkdir()
    source = PackageSource(url=str(tmp_path / "feed"))
    orchestrator = InstallOrchestrator(FeedInstallAction())

    with pytest.raises(PackageInstallError, match="could not be downloaded"):
        orchestrator.install(FOO, target, [source])
