"""Path utilities shared by configuration and installation.

All paths handed to the installer may be relative; they are made absolute
against the app-provided working directory, never the process cwd.
"""

import logging
from pathlib import Path

from .protocols import ConfigurationProtocol

logger = logging.getLogger(__name__)

TOOLS_PATH_KEY = "Paths_Tools"


def make_absolute(path: Path | str, working_directory: Path) -> Path:
    """Resolve a possibly-relative path against the working directory.

    Args:
        path: Path to resolve ("~" is expanded)
        working_directory: Base for relative paths

    Returns:
        Absolute, normalized path

    Example:
        >>> make_absolute("tools/addins", Path("/build"))
        PosixPath('/build/tools/addins')
    """
    candidate = Path(path).expanduser()
    if not candidate.is_absolute():
        candidate = Path(working_directory) / candidate
    return candidate.resolve()


def get_tool_path(configuration: ConfigurationProtocol, working_directory: Path) -> Path:
    """Get the configured tools root.

    Uses the "Paths_Tools" configuration value when set, otherwise
    <working_directory>/tools.
    """
    tool_path = configuration.get_value(TOOLS_PATH_KEY)
    if tool_path and tool_path.strip():
        return make_absolute(tool_path.strip(), working_directory)

    logger.debug(f"{TOOLS_PATH_KEY} not configured, using {working_directory / 'tools'}")
    return make_absolute("tools", working_directory)
