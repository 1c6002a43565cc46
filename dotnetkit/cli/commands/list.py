"""
List command implementation.

Shows installed SDK versions recorded in the install ledger.
"""

import logging

from dotnetkit.cli.utils import config_from_args
from dotnetkit.core.version import SemanticVersion
from dotnetkit.sdk.ledger import InstallLedger

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the list command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    config = config_from_args(args)

    if not config.ledger_path.exists():
        print(f"No .NET SDKs installed in {config.install_root}")
        return 0

    ledger = InstallLedger(
        config.ledger_path,
        config.platform,
        lock_path=config.lock_dir / "ledger.lock",
        lock_timeout=config.lock_timeout,
    )
    primary = ledger.primary_version()

    if args.all_platforms:
        platforms = ledger.platforms()
    else:
        platforms = {config.platform: ledger.installed_versions(config.platform)}

    for platform, versions in sorted(platforms.items()):
        print(f"{platform}:")
        if not versions:
            print("  (none)")
            continue

        for version in sorted(versions, key=_sort_key, reverse=True):
            marker = "*" if primary is not None and _sort_key(version) == primary else " "
            runtime = versions[version]
            suffix = f"  (runtime {runtime})" if runtime else ""
            print(f"{marker} {version}{suffix}")

    return 0


def _sort_key(version: str) -> SemanticVersion:
    return SemanticVersion.parse(version)
