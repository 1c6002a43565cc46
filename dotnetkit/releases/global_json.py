"""
Project-local SDK version lookup.

When no version is given on the command line, the requested SDK comes from the
nearest ``global.json`` file, searched from the working directory upward:

    {
      "sdk": {
        "version": "9.0.100"
      }
    }
"""

import json
import logging
from pathlib import Path
from typing import Optional

from dotnetkit.core.exceptions import ProjectConfigError, ProjectConfigNotFoundError

logger = logging.getLogger(__name__)

GLOBAL_JSON = "global.json"


def find_global_json(start_dir: Optional[Path] = None) -> Path:
    """
    Find the nearest global.json walking parent directories.

    Args:
        start_dir: Directory to start from (default: current directory)

    Returns:
        Path to the first global.json found

    Raises:
        ProjectConfigNotFoundError: If the filesystem root is reached first
    """
    start = Path(start_dir or Path.cwd()).resolve()

    for directory in (start, *start.parents):
        candidate = directory / GLOBAL_JSON
        if candidate.is_file():
            logger.debug(f"Found {GLOBAL_JSON}: {candidate}")
            return candidate

    raise ProjectConfigNotFoundError(start)


def read_sdk_version(path: Path) -> str:
    """
    Read the ``sdk.version`` field of a global.json file.

    Raises:
        ProjectConfigError: If the file is not valid JSON or has no SDK version
    """
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ProjectConfigError(f"Invalid JSON in {path}: {e}") from e
    except OSError as e:
        raise ProjectConfigError(f"Failed to read {path}: {e}") from e

    sdk = data.get("sdk") if isinstance(data, dict) else None
    version = sdk.get("version") if isinstance(sdk, dict) else None

    if not isinstance(version, str) or not version.strip():
        raise ProjectConfigError(f"{path} does not specify sdk.version")

    return version.strip()


def resolve_project_expression(start_dir: Optional[Path] = None) -> str:
    """
    Get the version expression declared by the nearest global.json.

    Example:
        >>> resolve_project_expression(Path("/src/my-app"))
        '9.0.100'
    """
    path = find_global_json(start_dir)
    version = read_sdk_version(path)
    logger.info(f"Using SDK version {version} from {path}")
    return version
