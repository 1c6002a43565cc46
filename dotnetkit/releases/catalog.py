"""
Release catalog client.

The remote release metadata is split in two levels: an index document listing
one summary per release channel, each pointing at a channel document with the
full list of releases. This module performs the two-level fetch and flattens
the result into :class:`~dotnetkit.releases.models.Channel` objects.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from dotnetkit.core.exceptions import CatalogUnavailableError
from dotnetkit.core.transport import HttpTransport
from dotnetkit.releases.models import (
    BuildDescriptor,
    Channel,
    Release,
    ReleaseType,
    SupportPhase,
)

logger = logging.getLogger(__name__)


class ReleaseCatalogClient:
    """
    Fetches the release catalog.

    Example:
        >>> client = ReleaseCatalogClient(HttpTransport(), index_url)
        >>> channels = client.fetch_catalog()
        >>> print([c.channel_version for c in channels])
        ['10.0', '9.0', '8.0', ...]
    """

    def __init__(self, transport: HttpTransport, index_url: str):
        self.transport = transport
        self.index_url = index_url

    def fetch_catalog(self) -> List[Channel]:
        """
        Fetch the index and every channel document.

        Returns:
            Channels in index order, with releases populated

        Raises:
            CatalogUnavailableError: If any document cannot be fetched or parsed
        """
        logger.info("Fetching release information...")
        index = self._fetch(self.index_url)

        try:
            summaries = index["releases-index"]
        except (KeyError, TypeError) as e:
            raise CatalogUnavailableError(
                f"Release index at {self.index_url} has no 'releases-index' list"
            ) from e

        channels = [self._load_channel(summary) for summary in summaries]
        logger.debug(f"Loaded {len(channels)} channels")
        return channels

    def _load_channel(self, summary: Dict[str, Any]) -> Channel:
        try:
            channel_url = summary["releases.json"]
            channel_version = summary["channel-version"]
        except (KeyError, TypeError) as e:
            raise CatalogUnavailableError(
                f"Malformed channel summary in release index: missing {e}"
            ) from e

        document = self._fetch(channel_url)

        try:
            releases = tuple(
                self._parse_release(data, channel_version)
                for data in document["releases"]
            )
            return Channel(
                channel_version=channel_version,
                latest_release=summary.get("latest-release", ""),
                latest_runtime=summary.get("latest-runtime", ""),
                latest_sdk=summary["latest-sdk"],
                support_phase=SupportPhase.from_value(summary.get("support-phase")),
                release_type=ReleaseType.from_value(summary.get("release-type")),
                releases=releases,
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise CatalogUnavailableError(
                f"Malformed channel document for {channel_version} ({channel_url}): {e}"
            ) from e

    @staticmethod
    def _parse_release(data: Dict[str, Any], channel_version: str) -> Release:
        sdk_data: Optional[Dict[str, Any]] = data.get("sdk")
        sdk = (
            BuildDescriptor.from_dict(sdk_data, channel_version)
            if sdk_data
            else None
        )
        sdks = tuple(
            descriptor
            for descriptor in (
                BuildDescriptor.from_dict(item, channel_version)
                for item in data.get("sdks") or []
            )
            if descriptor is not None
        )
        return Release(
            release_version=data.get("release-version", ""),
            sdk=sdk,
            sdks=sdks,
        )

    def _fetch(self, url: str) -> Any:
        # requests' JSONDecodeError is both a ValueError and a RequestException
        try:
            return self.transport.get_json(url)
        except ValueError as e:
            raise CatalogUnavailableError(f"Invalid JSON in {url}: {e}") from e
        except requests.RequestException as e:
            raise CatalogUnavailableError(f"Failed to fetch {url}: {e}") from e
