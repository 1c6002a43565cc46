"""
Install command implementation.

Resolves a version expression (or the nearest global.json) to one SDK build,
then downloads, verifies and installs it.
"""

import logging

from dotnetkit.cli.utils import ProgressPrinter, config_from_args
from dotnetkit.core.exceptions import IntegrityMismatchError
from dotnetkit.sdk.pipeline import SdkInstaller

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the install command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)

    Raises:
        DotnetKitError: Any install failure, mapped to an exit code by the CLI
    """
    logger.debug(f"Arguments: {args}")

    config = config_from_args(args)
    installer = SdkInstaller(config)
    progress = ProgressPrinter(enabled=False if args.quiet else None)

    try:
        result = installer.install(args.version, progress_callback=progress)
    except IntegrityMismatchError as e:
        progress.finish()
        if args.show_hash:
            _print_hashes(e.expected, e.actual)
        raise
    finally:
        installer.transport.close()

    progress.finish()

    if args.show_hash:
        _print_hashes(result.expected_digest, result.actual_digest)

    print(f"Installed .NET SDK {result.version} to {result.install_dir}")
    if result.runtime_version:
        print(f"  Runtime: {result.runtime_version}")
    if result.is_primary:
        print(f"  {result.version} is now the primary SDK version")

    return 0


def _print_hashes(expected: str, actual: str):
    print(f"Expected hash: {expected.strip().upper()}")
    print(f"Computed hash: {actual.strip().upper()}")
