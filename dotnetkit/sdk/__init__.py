"""
SDK installation: ledger, archive installer and install pipeline.
"""

from .ledger import InstallLedger
from .installer import (
    ArchiveInstaller,
    MergeAction,
    MergeEntry,
    MergePlan,
    plan_merge,
    apply_merge,
)
from .pipeline import InstallResult, SdkInstaller

__all__ = [
    "InstallLedger",
    "ArchiveInstaller",
    "MergeAction",
    "MergeEntry",
    "MergePlan",
    "plan_merge",
    "apply_merge",
    "InstallResult",
    "SdkInstaller",
]
