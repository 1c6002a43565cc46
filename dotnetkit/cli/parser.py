"""
dotnetkit CLI argument parser.

This module implements the command-line interface for dotnetkit using argparse.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotnetkit.core.exceptions import DotnetKitError, IntegrityMismatchError

try:
    from importlib.metadata import version

    __version__ = version("dotnetkit")
except Exception:
    __version__ = "0.1.0"

logger = logging.getLogger(__name__)

EXIT_INTEGRITY_MISMATCH = 1
EXIT_FAILURE = 2
EXIT_INTERRUPTED = 130


class CLI:
    """dotnetkit command-line interface."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="dnkit",
            description="dotnetkit - .NET SDK installer",
            epilog='Use "dnkit COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"dotnetkit {__version__}"
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to configuration file (default: ~/.dotnetkit/config.yaml)",
        )
        parser.add_argument(
            "--install-root",
            type=Path,
            metavar="PATH",
            help="Directory holding installed SDKs (default: ~/.dotnetkit)",
        )
        parser.add_argument(
            "--platform",
            metavar="RID",
            help="Platform identifier to install for (default: detected, e.g. linux-x64)",
        )

        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_install_command(subparsers)
        self._add_list_command(subparsers)

        return parser

    def _add_install_command(self, subparsers):
        """Add 'install' subcommand."""
        parser = subparsers.add_parser(
            "install",
            help="Install a .NET SDK version",
            description=(
                "Install a .NET SDK. VERSION may be an exact version (9.0.100), "
                "a major version (9), a minor wildcard (9.0.x), a feature band "
                "(9.0.1xx), 'latest' or 'lts'. Without VERSION, the version in "
                "the nearest global.json is used."
            ),
        )
        parser.add_argument(
            "version",
            nargs="?",
            metavar="VERSION",
            help="Version to install (default: from global.json)",
        )
        parser.add_argument(
            "--hash",
            dest="show_hash",
            action="store_true",
            help=argparse.SUPPRESS,
        )

    def _add_list_command(self, subparsers):
        """Add 'list' subcommand."""
        parser = subparsers.add_parser(
            "list",
            help="List installed .NET SDK versions",
            description="List SDK versions recorded in the install ledger",
        )
        parser.add_argument(
            "--all-platforms",
            action="store_true",
            help="Show installs for every platform, not just the current one",
        )

    def parse_args(self, args: Optional[List[str]] = None):
        """
        Parse command-line arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 success, 1 integrity mismatch, 2 other failure)
        """
        parsed_args = self.parse_args(args)

        self._configure_logging(parsed_args)

        if not parsed_args.command:
            self.parser.print_help()
            return EXIT_FAILURE

        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return EXIT_INTERRUPTED
        except IntegrityMismatchError as e:
            from dotnetkit.cli.utils import print_error

            print_error(str(e), "The downloaded file was discarded; try again.")
            return EXIT_INTEGRITY_MISMATCH
        except DotnetKitError as e:
            from dotnetkit.cli.utils import print_error

            print_error(str(e))
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return EXIT_FAILURE
        except Exception as e:
            logger.error(f"Error: {e}")
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return EXIT_FAILURE

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            force=True,  # Reconfigure if already configured
        )

        # Keep third-party connection chatter out of normal output
        logging.getLogger("urllib3").setLevel(
            logging.DEBUG if args.verbose else logging.WARNING
        )
        logging.getLogger("filelock").setLevel(logging.WARNING)

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Args:
            args: Parsed arguments with command field

        Returns:
            Exit code from command handler
        """
        command_map = {
            "install": "dotnetkit.cli.commands.install",
            "list": "dotnetkit.cli.commands.list",
        }

        module_name = command_map.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return EXIT_FAILURE

        module = importlib.import_module(module_name)
        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
