"""
SDK install pipeline.

This module orchestrates a complete install, coordinating the release
catalog, version resolver, transfer verifier, archive installer and ledger:

1. Determine the version expression (argument or global.json)
2. Validate it before any network access
3. Check the ledger (exact versions are checked before the network)
4. Fetch the catalog and resolve the expression to one build
5. Download and verify the platform archive
6. Extract and merge into the shared installation tree
7. Record the install in the ledger
8. Remove the archive and staging directory on every exit path
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from dotnetkit.core.config import InstallerConfig
from dotnetkit.core.download import DownloadProgress, fetch_and_verify
from dotnetkit.core.exceptions import (
    AlreadyInstalledError,
    FilesystemError,
    NoMatchingBuildError,
)
from dotnetkit.core.filesystem import remove_file, safe_rmtree
from dotnetkit.core.transport import HttpTransport
from dotnetkit.releases.catalog import ReleaseCatalogClient
from dotnetkit.releases.global_json import resolve_project_expression
from dotnetkit.releases.models import BuildDescriptor, Channel
from dotnetkit.releases.resolver import (
    VersionExpression,
    VersionResolver,
    parse_expression,
)
from dotnetkit.sdk.installer import ArchiveInstaller
from dotnetkit.sdk.ledger import InstallLedger

logger = logging.getLogger(__name__)


@dataclass
class InstallResult:
    """Result of an SDK install."""

    version: str
    """Installed SDK version"""

    runtime_version: Optional[str]
    """Runtime version paired with the SDK"""

    platform: str
    """Platform identifier installed for"""

    install_dir: Path
    """Shared installation tree the build was merged into"""

    is_primary: bool
    """Whether the build became the primary version"""

    expected_digest: str
    """Digest declared by the catalog"""

    actual_digest: str
    """Digest computed while downloading"""

    download_time: float
    """Time spent downloading in seconds"""

    extraction_time: float
    """Time spent extracting in seconds"""


class SdkInstaller:
    """
    Installs .NET SDK builds into the configured install root.

    Example:
        >>> installer = SdkInstaller(load_config())
        >>> result = installer.install("9.0.1xx")
        >>> print(f"Installed {result.version} at {result.install_dir}")
    """

    def __init__(
        self,
        config: InstallerConfig,
        transport: Optional[HttpTransport] = None,
        catalog_client: Optional[ReleaseCatalogClient] = None,
        resolver: Optional[VersionResolver] = None,
        archive_installer: Optional[ArchiveInstaller] = None,
        ledger: Optional[InstallLedger] = None,
    ):
        self.config = config
        self.transport = transport or HttpTransport(timeout=config.timeout)
        self.catalog_client = catalog_client or ReleaseCatalogClient(
            self.transport, config.releases_index_url
        )
        self.resolver = resolver or VersionResolver()
        self.archive_installer = archive_installer or ArchiveInstaller(config)
        self.ledger = ledger or InstallLedger(
            config.ledger_path,
            config.platform,
            lock_path=config.lock_dir / "ledger.lock",
            lock_timeout=config.lock_timeout,
        )

    def install(
        self,
        expression: Optional[str] = None,
        start_dir: Optional[Path] = None,
        progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    ) -> InstallResult:
        """
        Resolve, download, verify, extract and record an SDK build.

        Args:
            expression: Version expression; if None, read from global.json
            start_dir: Directory to start the global.json search from
            progress_callback: Optional download progress callback

        Returns:
            InstallResult describing the installed build

        Raises:
            InvalidExpressionError: Malformed expression (before network access)
            ProjectConfigNotFoundError: No expression and no global.json
            AlreadyInstalledError: The ledger already lists the version
            CatalogUnavailableError: The catalog could not be loaded
            NoMatchingBuildError: Nothing matches, or no file for the platform
            SizeUnknownError, DestinationConflictError, TransferError: Download
            IntegrityMismatchError: Digest check failed
            ExtractionFailureError: Archive could not be extracted
        """
        if expression is None:
            expression = resolve_project_expression(start_dir)

        parsed = parse_expression(expression)
        platform = self.config.platform

        self.ledger.ensure_exists()

        if parsed.is_exact:
            self._check_not_installed(parsed.version, platform)

        catalog = self.catalog_client.fetch_catalog()
        build = self.resolve(parsed, catalog)
        self._check_not_installed(build.version, platform)

        platform_file = build.file_for(platform)
        if platform_file is None:
            raise NoMatchingBuildError(
                f".NET SDK {build.version} has no .tar.gz archive for {platform} "
                f"(available: {', '.join(build.platforms) or 'none'})"
            )

        return self._download_and_install(build, platform_file, progress_callback)

    def resolve(
        self, expression: VersionExpression, catalog: List[Channel]
    ) -> BuildDescriptor:
        build = self.resolver.resolve(expression, catalog)
        logger.info(f"Resolved '{expression}' to .NET SDK {build.version}")
        return build

    def _check_not_installed(self, version, platform: str):
        if self.ledger.is_installed(platform, version):
            raise AlreadyInstalledError(str(version), platform)

    def _download_and_install(
        self,
        build: BuildDescriptor,
        platform_file,
        progress_callback: Optional[Callable[[DownloadProgress], None]],
    ) -> InstallResult:
        archive_path = self.config.archive_path
        platform = self.config.platform

        # Leftovers from an interrupted run
        remove_file(archive_path)

        try:
            download_start = time.time()
            verification = fetch_and_verify(
                platform_file,
                archive_path,
                self.transport,
                progress_callback=progress_callback,
            )
            download_time = time.time() - download_start
            logger.info(f"Download complete in {download_time:.2f}s")

            makes_primary = self.ledger.should_become_primary(build.version)

            extraction_start = time.time()
            self.archive_installer.extract_and_merge(
                archive_path, platform, makes_primary
            )
            extraction_time = time.time() - extraction_start

            self.ledger.record_install(
                platform, build.version, build.runtime_version, makes_primary
            )

            return InstallResult(
                version=str(build.version),
                runtime_version=build.runtime_version,
                platform=platform,
                install_dir=self.archive_installer.target_dir(platform),
                is_primary=makes_primary,
                expected_digest=verification.expected_digest,
                actual_digest=verification.actual_digest,
                download_time=download_time,
                extraction_time=extraction_time,
            )

        finally:
            self._cleanup(archive_path)

    def _cleanup(self, archive_path: Path):
        # Runs in a finally block; never replace the error being propagated.
        try:
            if remove_file(archive_path):
                logger.debug(f"Removed archive: {archive_path}")
        except OSError as e:
            logger.warning(f"Could not remove archive {archive_path}: {e}")

        staging_dir = self.config.staging_dir
        if staging_dir.exists():
            try:
                safe_rmtree(staging_dir, require_prefix=self.config.install_root)
                logger.debug(f"Removed staging directory: {staging_dir}")
            except FilesystemError as e:
                logger.warning(f"Could not remove staging directory: {e}")
