"""
Install ledger for tracking installed SDK versions.

The ledger is a small JSON document at ``<install_root>/installed.json``:

    {
      "version": 1,
      "primary_version": "9.0.100",
      "platforms": {
        "linux-x64": {"9.0.100": "9.0.0"}
      }
    }

It records, per platform identifier, which SDK versions are installed (mapped
to their paired runtime version) and which installed version is primary. The
primary version decides whose files win in the shared installation tree, so
it never moves backwards. The ledger, not the file tree, is the source of
truth for what is installed.
"""

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Optional

from filelock import FileLock, Timeout

from dotnetkit.core.exceptions import LedgerError, LedgerLockTimeout
from dotnetkit.core.filesystem import atomic_write
from dotnetkit.core.version import SemanticVersion

logger = logging.getLogger(__name__)

LEDGER_FORMAT_VERSION = 1


class InstallLedger:
    """
    Manages the install ledger with exclusive access for updates.

    Example:
        >>> ledger = InstallLedger(Path('~/.dotnetkit/installed.json'), 'linux-x64')
        >>> ledger.ensure_exists()
        >>> if not ledger.is_installed('linux-x64', '9.0.100'):
        ...     makes_primary = ledger.should_become_primary('9.0.100')
        ...     # download and extract ...
        ...     ledger.record_install('linux-x64', '9.0.100', '9.0.0', makes_primary)
    """

    def __init__(
        self,
        ledger_path: Path,
        platform: str,
        lock_path: Optional[Path] = None,
        lock_timeout: int = 30,
    ):
        """
        Initialize install ledger.

        Args:
            ledger_path: Path to installed.json
            platform: Current platform identifier (seeded on creation)
            lock_path: Lock file path (default: <ledger dir>/lock/ledger.lock)
            lock_timeout: Timeout in seconds for acquiring the lock
        """
        self.ledger_path = Path(ledger_path)
        self.platform = platform
        self.lock_path = (
            Path(lock_path)
            if lock_path
            else self.ledger_path.parent / "lock" / "ledger.lock"
        )
        self.lock_timeout = lock_timeout

        logger.debug(f"Initialized ledger at {self.ledger_path}")

    def _empty(self) -> dict:
        return {
            "version": LEDGER_FORMAT_VERSION,
            "primary_version": None,
            "platforms": {self.platform: {}},
        }

    def _load(self) -> dict:
        """
        Load ledger from disk.

        Returns:
            Ledger data (an empty ledger if the file does not exist)

        Raises:
            LedgerError: If the file cannot be read or is malformed
        """
        if not self.ledger_path.exists():
            return self._empty()

        try:
            with open(self.ledger_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Failed to load ledger: {e}")
            raise LedgerError(f"Failed to load ledger {self.ledger_path}: {e}") from e

        if (
            not isinstance(data, dict)
            or not isinstance(data.get("platforms"), dict)
            or "primary_version" not in data
        ):
            raise LedgerError(f"Invalid ledger format in {self.ledger_path}")

        return data

    def _save(self, data: dict):
        """Write the whole ledger atomically."""
        try:
            json_content = json.dumps(data, indent=2, ensure_ascii=False)
            atomic_write(self.ledger_path, json_content)
        except OSError as e:
            logger.error(f"Failed to save ledger: {e}")
            raise LedgerError(f"Failed to save ledger {self.ledger_path}: {e}") from e

        logger.debug(f"Saved ledger to {self.ledger_path}")

    @contextmanager
    def _lock(self):
        """
        Hold the exclusive ledger lock.

        Raises:
            LedgerLockTimeout: If lock cannot be acquired within timeout
        """
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        lock = FileLock(self.lock_path, timeout=self.lock_timeout)

        try:
            with lock:
                logger.debug("Acquired ledger lock")
                yield
            logger.debug("Released ledger lock")
        except Timeout as e:
            logger.error(f"Failed to acquire ledger lock within {self.lock_timeout}s")
            raise LedgerLockTimeout(
                f"Could not acquire ledger lock within {self.lock_timeout} seconds. "
                "Another dotnetkit process may be running."
            ) from e

    def ensure_exists(self):
        """Create the ledger with an empty map for the current platform if absent."""
        if self.ledger_path.exists():
            return

        with self._lock():
            if not self.ledger_path.exists():
                self._save(self._empty())
                logger.info(f"Created install ledger: {self.ledger_path}")

    def is_installed(self, platform: str, version) -> bool:
        """
        Check whether a version is recorded for a platform.

        Args:
            platform: Platform identifier
            version: SemanticVersion or version string
        """
        target = _as_version(version)
        entries = self._load()["platforms"].get(platform) or {}
        return any(SemanticVersion.try_parse(key) == target for key in entries)

    def primary_version(self) -> Optional[SemanticVersion]:
        """Get the recorded primary version, or None if none is set."""
        value = self._load().get("primary_version")
        if value is None:
            return None

        primary = SemanticVersion.try_parse(value)
        if primary is None:
            raise LedgerError(
                f"Invalid primary version '{value}' in {self.ledger_path}"
            )
        return primary

    def should_become_primary(self, version) -> bool:
        """
        Decide whether installing version makes it the new primary.

        True if no primary is recorded, or version has higher precedence.
        """
        current = self.primary_version()
        return current is None or _as_version(version) > current

    def installed_versions(self, platform: str) -> Dict[str, Optional[str]]:
        """Get installed versions for a platform mapped to their runtime versions."""
        return dict(self._load()["platforms"].get(platform) or {})

    def platforms(self) -> Dict[str, Dict[str, Optional[str]]]:
        return {k: dict(v) for k, v in self._load()["platforms"].items()}

    def record_install(
        self,
        platform: str,
        version,
        runtime_version: Optional[str],
        makes_primary: bool,
    ):
        """
        Record a completed install.

        Re-reads the ledger under the exclusive lock, inserts the entry, sets
        the primary version if requested and rewrites the whole document.

        Args:
            platform: Platform identifier
            version: Installed SDK version
            runtime_version: Paired runtime version (may be None)
            makes_primary: Whether this version becomes the primary
        """
        version = _as_version(version)

        with self._lock():
            data = self._load()

            if makes_primary:
                current = data.get("primary_version")
                current_version = SemanticVersion.try_parse(current) if current else None
                if current_version is not None and version < current_version:
                    logger.warning(
                        f"Not lowering primary version from {current_version} "
                        f"to {version}"
                    )
                else:
                    data["primary_version"] = str(version)

            data["platforms"].setdefault(platform, {})[str(version)] = runtime_version
            self._save(data)

        logger.info(
            f"Recorded .NET SDK {version} for {platform}"
            + (" (primary)" if makes_primary else "")
        )


def _as_version(version) -> SemanticVersion:
    if isinstance(version, SemanticVersion):
        return version
    return SemanticVersion.parse(str(version))
