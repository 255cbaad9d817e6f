"""Installer configuration.

Configuration is injected policy: apps choose where values come from
(in-memory mapping, environment variables, their own settings files) by
providing a ConfigurationProtocol implementation. InstallerSettings captures
everything derived from it once, at installer construction.
"""

import logging
import os
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from .protocols import ConfigurationProtocol
from .utils import get_tool_path

logger = logging.getLogger(__name__)

SOURCE_KEY = "NuGet_Source"
TARGET_FRAMEWORK_KEY = "NuGet_TargetFramework"
DEFAULT_SOURCE = "https://api.nuget.org/v3/index.json"
DEFAULT_TARGET_FRAMEWORK = "net8.0"
NUGET_CONFIG_FILE = "NuGet.config"


class MappingConfiguration:
    """Configuration backed by a plain mapping (keys are case-insensitive)."""

    def __init__(self, values: Mapping[str, str] | None = None):
        self._values = {key.lower(): value for key, value in (values or {}).items()}

    def get_value(self, key: str) -> str | None:
        return self._values.get(key.lower())


class EnvironmentConfiguration:
    """Configuration read from environment variables.

    Key "Paths_Tools" maps to NUGET_INSTALLER_PATHS_TOOLS (with the default prefix).
    """

    def __init__(self, prefix: str = "NUGET_INSTALLER_", environ: Mapping[str, str] | None = None):
        self.prefix = prefix
        self._environ = environ if environ is not None else os.environ

    def get_value(self, key: str) -> str | None:
        return self._environ.get(f"{self.prefix}{key.upper()}")


def load_nuget_config_sources(config_dir: Path) -> list[str]:
    """
    Read enabled package sources from a NuGet.config file.

    Honors <clear/> and <disabledPackageSources>. Relative local sources are
    resolved against the config file's directory.

    Args:
        config_dir: Directory that may contain NuGet.config

    Returns:
        Source URLs/paths in file order, empty if no config file or it can't be read
    """
    config_file = next(
        (candidate for candidate in (config_dir / NUGET_CONFIG_FILE, config_dir / "nuget.config") if candidate.is_file()),
        None,
    )
    if config_file is None:
        return []

    try:
        root = ET.parse(config_file).getroot()
    except ET.ParseError as e:
        logger.warning(f"Ignoring unreadable {config_file}: {e}")
        return []

    disabled = set()
    for element in root.findall("disabledPackageSources/add"):
        if (element.get("value") or "").strip().lower() == "true":
            disabled.add((element.get("key") or "").lower())

    sources: dict[str, str] = {}
    package_sources = root.find("packageSources")
    if package_sources is not None:
        for element in package_sources:
            if element.tag == "clear":
                sources.clear()
            elif element.tag == "add" and element.get("value"):
                sources[(element.get("key") or element.get("value")).lower()] = element.get("value").strip()

    result = []
    for key, value in sources.items():
        if key in disabled:
            logger.debug(f"Skipping disabled package source '{key}'")
            continue
        if not value.lower().startswith(("http://", "https://")) and not Path(value).is_absolute():
            value = str((config_file.parent / value).resolve())
        result.append(value)

    logger.debug(f"Loaded {len(result)} package sources from {config_file}")
    return result


class InstallerSettings(BaseModel):
    """Installer settings derived from configuration (immutable)."""

    model_config = ConfigDict(frozen=True)

    working_directory: Path
    tool_path: Path
    target_framework: str = DEFAULT_TARGET_FRAMEWORK
    sources: list[str] = Field(default_factory=list)
    default_source: str = DEFAULT_SOURCE
    request_timeout: float = 30.0

    @classmethod
    def from_configuration(
        cls,
        configuration: ConfigurationProtocol,
        working_directory: Path,
        **overrides,
    ) -> "InstallerSettings":
        """
        Build settings from a configuration provider.

        Tool path comes from "Paths_Tools" (default <working_directory>/tools);
        package sources from a NuGet.config inside that tool path.

        Example:
            >>> settings = InstallerSettings.from_configuration(
            ...     MappingConfiguration({"Paths_Tools": "build/tools"}),
            ...     working_directory=Path("/repo"),
            ... )
            >>> settings.tool_path
            PosixPath('/repo/build/tools')
        """
        working_directory = Path(working_directory).resolve()
        tool_path = get_tool_path(configuration, working_directory)
        values = {
            "working_directory": working_directory,
            "tool_path": tool_path,
            "sources": load_nuget_config_sources(tool_path),
        }
        target_framework = configuration.get_value(TARGET_FRAMEWORK_KEY)
        if target_framework and target_framework.strip():
            values["target_framework"] = target_framework.strip()
        values.update(overrides)
        return cls(**values)
