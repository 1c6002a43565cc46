"""
Archive extraction and merge into the shared installation tree.

Every installed SDK for a platform shares one directory. Installing works in
two phases:

1. Stage: the archive is extracted into a private staging directory that is
   wiped first (recovering from any crashed earlier run).
2. Reconcile: a :class:`MergePlan` decides, per staged file, whether it
   overwrites, creates or skips its destination, then the plan is applied.

A build that becomes the primary version overwrites shared files; an older
build only fills paths that do not exist yet, so it never regresses files
placed by a newer one.
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from dotnetkit.core.config import InstallerConfig
from dotnetkit.core.exceptions import ExtractionFailureError, FilesystemError
from dotnetkit.core.filesystem import extract_archive, safe_rmtree

logger = logging.getLogger(__name__)


class MergeAction(Enum):
    OVERWRITE = "overwrite"
    CREATE = "create"
    SKIP = "skip"


@dataclass
class MergeEntry:
    source: Path
    destination: Path
    action: MergeAction


@dataclass
class MergePlan:
    """Per-file decisions for reconciling a staged build into the tree."""

    target_dir: Path
    overwrite: bool
    entries: List[MergeEntry] = field(default_factory=list)

    def by_action(self, action: MergeAction) -> List[MergeEntry]:
        return [e for e in self.entries if e.action == action]

    @property
    def skipped(self) -> List[MergeEntry]:
        return self.by_action(MergeAction.SKIP)

    @property
    def written(self) -> List[MergeEntry]:
        return [e for e in self.entries if e.action != MergeAction.SKIP]


def plan_merge(staging_dir: Path, target_dir: Path, overwrite: bool) -> MergePlan:
    """
    Build the merge plan for a staged tree.

    Args:
        staging_dir: Directory holding the extracted build
        target_dir: Shared installation tree
        overwrite: True if the staged build is the new primary

    Returns:
        MergePlan listing every staged file (symlinks included)
    """
    plan = MergePlan(target_dir=target_dir, overwrite=overwrite)

    for root, dirs, files in os.walk(staging_dir):
        root_path = Path(root)
        # Directory symlinks are moved like files, not descended into
        linked_dirs = [d for d in dirs if (root_path / d).is_symlink()]
        dirs[:] = sorted(d for d in dirs if d not in linked_dirs)

        for name in sorted(files + linked_dirs):
            source = root_path / name
            destination = target_dir / source.relative_to(staging_dir)
            exists = destination.exists() or destination.is_symlink()

            if not exists:
                action = MergeAction.CREATE
            elif overwrite:
                action = MergeAction.OVERWRITE
            else:
                action = MergeAction.SKIP

            plan.entries.append(MergeEntry(source, destination, action))

    return plan


def apply_merge(plan: MergePlan) -> int:
    """
    Apply a merge plan by moving staged files into place.

    Entries are applied in plan order with no rollback: if a move fails,
    files already moved stay in the target tree and the rest remain staged.
    The caller records nothing in the ledger for such a partial merge.

    Returns:
        Number of files written
    """
    written = 0
    for entry in plan.written:
        entry.destination.parent.mkdir(parents=True, exist_ok=True)
        os.replace(entry.source, entry.destination)
        written += 1

    logger.debug(
        f"Merged {written} files into {plan.target_dir} "
        f"({len(plan.skipped)} kept from newer builds)"
    )
    return written


class ArchiveInstaller:
    """
    Unpacks a verified SDK archive into the per-platform installation tree.

    Example:
        >>> installer = ArchiveInstaller(config)
        >>> installer.extract_and_merge(Path('dotnet.tar.gz'), 'linux-x64', True)
    """

    def __init__(self, config: InstallerConfig):
        self.config = config

    def target_dir(self, platform: str) -> Path:
        return self.config.install_root / platform

    def extract_and_merge(
        self,
        archive_path: Path,
        platform: str,
        is_newer_than_installed: bool,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> MergePlan:
        """
        Extract an archive and merge it into the platform's tree.

        The staging directory is removed on every exit path.

        Args:
            archive_path: Verified .tar.gz archive
            platform: Platform identifier naming the target tree
            is_newer_than_installed: True if this build becomes the primary
            progress_callback: Optional callback(current, total) for extraction

        Returns:
            The applied MergePlan

        Raises:
            ExtractionFailureError: If the archive cannot be extracted or merged
        """
        staging_dir = self.config.staging_dir
        target_dir = self.target_dir(platform)

        self._reset_staging(staging_dir)

        try:
            logger.info(f"Extracting {Path(archive_path).name}...")
            extract_archive(archive_path, staging_dir, progress_callback)

            plan = plan_merge(staging_dir, target_dir, is_newer_than_installed)
            try:
                apply_merge(plan)
            except OSError as e:
                raise ExtractionFailureError(
                    f"Failed to merge files into {target_dir}: {e}"
                ) from e

            logger.info(
                f"Extraction completed: {len(plan.written)} files written to {target_dir}"
            )
            return plan
        finally:
            if staging_dir.exists():
                try:
                    safe_rmtree(staging_dir, require_prefix=self.config.install_root)
                    logger.debug(f"Removed staging directory: {staging_dir}")
                except FilesystemError as e:
                    logger.warning(f"Could not remove staging directory: {e}")

    def _reset_staging(self, staging_dir: Path):
        if staging_dir.exists():
            logger.debug(f"Removing stale staging directory: {staging_dir}")
            safe_rmtree(staging_dir, require_prefix=self.config.install_root)
        staging_dir.mkdir(parents=True)
