"""
Artifact transfer with streaming integrity verification.

This module downloads an SDK archive to local disk while computing its digest
in the same forward pass over the byte stream:

- HEAD request to learn the total size before transferring
- Exclusive creation of the destination file
- Each received chunk is written to disk and fed to the hasher
- Digest compared case-insensitively with the catalog value
- Progress reporting (bytes, percentage, speed, ETA)
"""

import hashlib
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import requests

from dotnetkit.core.exceptions import (
    DestinationConflictError,
    IntegrityMismatchError,
    SizeUnknownError,
    TransferError,
)
from dotnetkit.core.transport import HttpTransport
from dotnetkit.releases.models import PlatformFile

logger = logging.getLogger(__name__)

CHUNK_SIZE = 81920


@dataclass
class DownloadProgress:
    """Progress information for a download."""

    bytes_downloaded: int
    total_bytes: int
    percentage: float
    speed_bps: float  # bytes per second
    eta_seconds: float  # estimated time remaining

    def __str__(self) -> str:
        return format_progress(self)


@dataclass
class VerificationResult:
    """Outcome of a verified transfer."""

    path: Path
    bytes_downloaded: int
    expected_digest: str
    actual_digest: str


class StreamingHasher:
    """Compute hash incrementally for streaming downloads."""

    def __init__(self):
        self.hasher = hashlib.sha512()

    def update(self, data: bytes):
        """Add data to hash computation."""
        self.hasher.update(data)

    def finalize(self) -> str:
        """Get final hash value as hex string."""
        return self.hasher.hexdigest()

    def verify(self, expected_hash: str) -> bool:
        """Check if computed hash matches expected value (case-insensitive)."""
        return self.finalize().lower() == expected_hash.strip().lower()


def fetch_and_verify(
    file: PlatformFile,
    destination: Path,
    transport: HttpTransport,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    chunk_size: int = CHUNK_SIZE,
) -> VerificationResult:
    """
    Download a platform file to destination and verify its SHA-512 digest.

    The destination must not exist; callers clear stale files first. On a
    digest mismatch the written file is left in place for the caller to
    discard without extracting.

    Args:
        file: Catalog file record (URL and expected digest)
        destination: Local path to create
        transport: HTTP transport
        progress_callback: Optional callback for progress updates
        chunk_size: Bytes per streamed chunk

    Returns:
        VerificationResult with expected and computed digests

    Raises:
        SizeUnknownError: If the server reports no content length
        DestinationConflictError: If destination already exists
        IntegrityMismatchError: If the computed digest differs
        TransferError: If the HTTP transfer fails

    Example:
        >>> result = fetch_and_verify(sdk_file, Path("dotnet.tar.gz"), HttpTransport())
        >>> print(result.actual_digest)
    """
    destination = Path(destination)

    try:
        total_size = transport.content_length(file.url)
    except requests.RequestException as e:
        raise TransferError(f"Failed to query size of {file.url}: {e}") from e

    if total_size <= 0:
        raise SizeUnknownError(
            f"Server did not report a size for {file.url}; refusing to download"
        )

    destination.parent.mkdir(parents=True, exist_ok=True)

    try:
        out = open(destination, "xb")
    except FileExistsError as e:
        raise DestinationConflictError(
            f"Download destination already exists: {destination}"
        ) from e

    logger.info(f"Downloading {file.name} ({total_size / 1024 / 1024:.1f} MB)")

    hasher = StreamingHasher()
    downloaded = 0
    start_time = time.time()
    last_progress_time = start_time

    try:
        with out, transport.stream(file.url, chunk_size=chunk_size) as chunks:
            for chunk in chunks:
                out.write(chunk)
                hasher.update(chunk)
                downloaded += len(chunk)

                # Report progress (max once per 0.5 seconds to avoid spam)
                current_time = time.time()
                if progress_callback and (
                    current_time - last_progress_time >= 0.5
                    or downloaded >= total_size
                ):
                    progress_callback(
                        _make_progress(downloaded, total_size, start_time, current_time)
                    )
                    last_progress_time = current_time
    except requests.RequestException as e:
        logger.error(f"Error during download: {e}")
        raise TransferError(f"Download of {file.url} failed: {e}") from e

    actual = hasher.finalize()
    if not hasher.verify(file.digest):
        logger.error(f"Hash mismatch for {file.name}")
        raise IntegrityMismatchError(file.name, file.digest, actual)

    logger.info("Hash verified successfully")
    return VerificationResult(
        path=destination,
        bytes_downloaded=downloaded,
        expected_digest=file.digest,
        actual_digest=actual,
    )


def _make_progress(
    downloaded: int, total_size: int, start_time: float, current_time: float
) -> DownloadProgress:
    elapsed = current_time - start_time
    speed = downloaded / elapsed if elapsed > 0 else 0
    remaining = max(total_size - downloaded, 0)
    eta = remaining / speed if speed > 0 else 0

    return DownloadProgress(
        bytes_downloaded=downloaded,
        total_bytes=total_size,
        percentage=min(downloaded / total_size * 100, 100.0),
        speed_bps=speed,
        eta_seconds=eta,
    )


def format_progress(progress: DownloadProgress) -> str:
    """
    Format progress for display.

    Example:
        >>> progress = DownloadProgress(52428800, 104857600, 50.0, 1048576, 50)
        >>> print(format_progress(progress))
        50.0/100.0 MB (50.0%) at 1.0 MB/s ETA: 50s
    """
    mb_downloaded = progress.bytes_downloaded / 1024 / 1024
    mb_total = progress.total_bytes / 1024 / 1024
    speed_mbps = progress.speed_bps / 1024 / 1024

    if progress.total_bytes > 0:
        return (
            f"{mb_downloaded:.1f}/{mb_total:.1f} MB "
            f"({progress.percentage:.1f}%) "
            f"at {speed_mbps:.1f} MB/s "
            f"ETA: {progress.eta_seconds:.0f}s"
        )
    else:
        return f"{mb_downloaded:.1f} MB " f"at {speed_mbps:.1f} MB/s"
