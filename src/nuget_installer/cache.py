"""Installation target cache - One shared target per category.

All packages of a category land in one folder so lookups and duplicate
detection work across installs. Asking for the same category at a second
root would split that folder, so it is refused rather than honored.

Categories may share a root. They then share one ContentIndex, so their
entries land in the same index file and their installs take the same lock.

Thread safety: get_or_create() is atomic. Installs into a root are
serialized by its index lock (see InstallationTarget.lock).
"""

import logging
import os
import threading
from collections.abc import Callable
from pathlib import Path

from .exceptions import ConfigurationConflictError
from .index import ContentIndex
from .project import InstallationTarget
from .schema import PackageType

logger = logging.getLogger(__name__)

TargetFactory = Callable[[Path, PackageType, str, ContentIndex], InstallationTarget]


def _root_key(root: Path) -> str:
    return os.path.normcase(os.path.normpath(root))


class InstallationTargetCache:
    """
    Per-category installation targets, created lazily and kept for the cache's lifetime.

    Owned by the installer and injectable, so separate installers (or tests)
    can have separate caches.
    """

    def __init__(self, target_factory: TargetFactory = InstallationTarget):
        self.target_factory = target_factory
        self._targets: dict[PackageType, InstallationTarget] = {}
        self._indexes: dict[str, ContentIndex] = {}
        self._lock = threading.Lock()

    def get_or_create(self, package_type: PackageType, root: Path, framework: str) -> InstallationTarget:
        """
        Get the target for a category, creating it on first use.

        Args:
            package_type: Installation category
            root: Absolute installation root requested for this install
            framework: Target framework for the category

        Returns:
            The category's shared InstallationTarget

        Raises:
            ConfigurationConflictError: If the category already has a target at a different root
        """
        with self._lock:
            target = self._targets.get(package_type)
            if target is None:
                key = _root_key(root)
                if key not in self._indexes:
                    self._indexes[key] = ContentIndex(root)
                index = self._indexes[key]
                target = self.target_factory(root, package_type, framework, index)
                self._targets[package_type] = target
                logger.debug(f"Created {package_type.value} installation target at {root}")
                return target

            if _root_key(target.root) != _root_key(root):
                raise ConfigurationConflictError(
                    f"Path {root} is not the same as the previous {package_type.value} install path {target.root}",
                    context={"package_type": package_type.value, "root": str(root), "existing_root": str(target.root)},
                )
            return target

    def get(self, package_type: PackageType) -> InstallationTarget | None:
        with self._lock:
            return self._targets.get(package_type)

    def clear(self) -> None:
        """Forget all targets (installed files are left on disk)."""
        with self._lock:
            self._targets.clear()
            self._indexes.clear()
