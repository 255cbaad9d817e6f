"""Content index - what is installed under one installation root.

Every category installing into the same root shares one ContentIndex
instance: the entries, the on-disk file and the lock that serializes
changes to the root. Two categories keeping separate copies would overwrite
each other's entries on save.

File: <root>/.nuget-installer.json

    {"version": "1.0",
     "packages": {"cake.git/2.0.0": {"id": "Cake.Git", "version": "2.0.0",
                                     "source": "...", "path": "Cake.Git.2.0.0",
                                     "files": ["lib/net8.0/Cake.Git.dll", ...],
                                     "installed_at": "..."}}}
"""

import json
import logging
import os
import threading
from datetime import UTC
from datetime import datetime
from pathlib import Path
from pathlib import PurePosixPath

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import ValidationError

from .schema import PackageIdentity

logger = logging.getLogger(__name__)

INDEX_FILE_NAME = ".nuget-installer.json"
INDEX_FORMAT = "1.0"


class ContentIndexEntry(BaseModel):
    """One installed package: its directory (root-relative) and its files (directory-relative)."""

    model_config = ConfigDict(frozen=True)

    id: str
    version: str
    source: str
    path: str
    files: tuple[str, ...] = ()
    installed_at: str = ""

    @property
    def archive_name(self) -> str:
        return f"{self.path}.nupkg"


class ContentIndex:
    """
    Installed packages of one installation root.

    root=None keeps the index in memory only; package archives are then not
    checked on disk.
    """

    def __init__(self, root: Path | None = None):
        self.root = root
        self.lock = threading.RLock()
        self._entries: dict[str, ContentIndexEntry] = self._read()

    @property
    def path(self) -> Path | None:
        return self.root / INDEX_FILE_NAME if self.root is not None else None

    def _read(self) -> dict[str, ContentIndexEntry]:
        if self.path is None or not self.path.is_file():
            return {}

        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
            if document.get("version") != INDEX_FORMAT:
                logger.warning(f"{self.path} has index format {document.get('version')!r}, reading as {INDEX_FORMAT}")
            entries = {
                key: ContentIndexEntry.model_validate(value) for key, value in document.get("packages", {}).items()
            }
        except (OSError, ValueError, AttributeError, ValidationError) as e:
            # An unreadable index only costs a re-download
            logger.warning(f"Ignoring unreadable content index {self.path}: {e}")
            return {}

        logger.debug(f"{self.path}: {len(entries)} installed packages")
        return entries

    def _write(self) -> None:
        if self.path is None:
            return

        document = {
            "version": INDEX_FORMAT,
            "packages": {key: self._entries[key].model_dump() for key in sorted(self._entries)},
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        staging = self.path.with_name(f"{self.path.name}.tmp")
        staging.write_text(json.dumps(document, indent=2), encoding="utf-8")
        os.replace(staging, self.path)

    def record(self, identity: PackageIdentity, source: str, files: list[str]) -> ContentIndexEntry:
        """
        Register an installed package, replacing any earlier entry for it.

        Args:
            identity: Installed package (stored in root/<identity.directory_name>)
            source: Source URL or folder it came from
            files: Unpacked files, relative to the package directory

        Returns:
            The stored entry
        """
        entry = ContentIndexEntry(
            id=identity.id,
            version=str(identity.version),
            source=source,
            path=identity.directory_name,
            files=tuple(sorted(set(files))),
            installed_at=datetime.now(UTC).isoformat(),
        )
        with self.lock:
            self._entries[identity.key] = entry
            self._write()
        return entry

    def forget(self, identity: PackageIdentity) -> ContentIndexEntry | None:
        """Drop a package's entry; returns it, or None if it wasn't registered."""
        with self.lock:
            entry = self._entries.pop(identity.key, None)
            if entry is not None:
                self._write()
        return entry

    def entry(self, identity: PackageIdentity) -> ContentIndexEntry | None:
        return self._entries.get(identity.key)

    def entries(self) -> list[ContentIndexEntry]:
        return [self._entries[key] for key in sorted(self._entries)]

    def contains(self, identity: PackageIdentity) -> bool:
        """Registered, and (for on-disk indexes) its archive is still in the package directory."""
        entry = self._entries.get(identity.key)
        if entry is None:
            return False
        if self.root is None:
            return True
        return (self.root / entry.path / entry.archive_name).is_file()

    def files(self, identity: PackageIdentity) -> list[PurePosixPath]:
        """Registered files of a package, relative to its directory."""
        entry = self._entries.get(identity.key)
        return [PurePosixPath(name) for name in entry.files] if entry is not None else []
