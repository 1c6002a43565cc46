"""
Pytest configuration and shared fixtures for dotnetkit tests.
"""

import hashlib
import io
import tarfile
from pathlib import Path
from typing import Dict, Union

import pytest

from dotnetkit.core.config import InstallerConfig
from dotnetkit.core.platform import clear_platform_cache
from dotnetkit.releases.catalog import ReleaseCatalogClient

INDEX_URL = "https://builds.example.test/dotnet/release-metadata/releases-index.json"
METADATA_BASE = "https://builds.example.test/dotnet/release-metadata"
DOWNLOAD_BASE = "https://builds.example.test/dotnet/Sdk"


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests that require network access",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --integration flag is provided."""
    if not config.getoption("--integration"):
        skip_integration = pytest.mark.skip(reason="need --integration option to run")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (requires --integration)",
    )


# ============================================================================
# Catalog Builders
# ============================================================================


def build_file_record(
    version: str, rid: str, digest: str = None, extension: str = ".tar.gz"
) -> dict:
    """Build a catalog file record for one platform archive."""
    name = f"dotnet-sdk-{rid}{extension}"
    return {
        "name": name,
        "rid": rid,
        "url": f"{DOWNLOAD_BASE}/{version}/dotnet-sdk-{version}-{rid}{extension}",
        "hash": digest or hashlib.sha512(f"{version}-{rid}".encode()).hexdigest(),
    }


def build_sdk_record(
    version: str,
    runtime_version: str = None,
    rids=("linux-x64", "osx-arm64"),
    display_version: str = None,
    digest: str = None,
) -> dict:
    """Build a catalog SDK record with a .tar.gz and a .zip per platform."""
    files = []
    for rid in rids:
        files.append(build_file_record(version, rid, digest))
        files.append(build_file_record(version, rid, digest, extension=".zip"))

    return {
        "version": version,
        "version-display": display_version or version,
        "runtime-version": runtime_version,
        "files": files,
    }


def build_release_documents(channels) -> Dict[str, dict]:
    """
    Build the release index plus one document per channel.

    Args:
        channels: Channel dicts with 'channel-version', 'support-phase',
            'release-type', 'latest-sdk' and 'releases'

    Returns:
        Mapping of URL to JSON document, index included
    """
    documents = {}
    summaries = []

    for channel in channels:
        channel_version = channel["channel-version"]
        url = f"{METADATA_BASE}/{channel_version}/releases.json"
        releases = channel["releases"]
        latest_release = releases[0]["release-version"] if releases else ""

        summaries.append(
            {
                "channel-version": channel_version,
                "latest-release": latest_release,
                "latest-runtime": latest_release,
                "latest-sdk": channel["latest-sdk"],
                "support-phase": channel["support-phase"],
                "release-type": channel["release-type"],
                "releases.json": url,
            }
        )
        documents[url] = {
            "channel-version": channel_version,
            "latest-sdk": channel["latest-sdk"],
            "releases": releases,
        }

    documents[INDEX_URL] = {"releases-index": summaries}
    return documents


def _release(release_version: str, sdk: dict, sdks=None) -> dict:
    data = {"release-version": release_version, "sdk": sdk}
    if sdks is not None:
        data["sdks"] = sdks
    return data


def sample_channels():
    """
    A catalog snapshot shaped like the real one.

    - 10.0: preview LTS
    - 9.0: active STS, latest 9.0.306, with a secondary 9.0.111 slot
    - 8.0: active LTS, latest 8.0.415, with secondary 8.0.318 and 8.0.121 slots
    - 6.0: end-of-life LTS
    """
    sdk_10 = build_sdk_record("10.0.100-rc.2.25502.107", "10.0.0-rc.2.25502.107")
    sdk_9_306 = build_sdk_record("9.0.306", "9.0.10")
    sdk_9_111 = build_sdk_record("9.0.111", "9.0.10")
    sdk_9_102 = build_sdk_record("9.0.102", "9.0.1")
    sdk_9_100 = build_sdk_record("9.0.100", "9.0.0")
    sdk_8_415 = build_sdk_record("8.0.415", "8.0.21")
    sdk_8_318 = build_sdk_record("8.0.318", "8.0.21")
    sdk_8_121 = build_sdk_record("8.0.121", "8.0.21")
    sdk_8_100 = build_sdk_record("8.0.100", "8.0.0")
    sdk_6_428 = build_sdk_record("6.0.428", "6.0.36")

    return [
        {
            "channel-version": "10.0",
            "support-phase": "preview",
            "release-type": "lts",
            "latest-sdk": "10.0.100-rc.2.25502.107",
            "releases": [_release("10.0.0-rc.2", sdk_10, [sdk_10])],
        },
        {
            "channel-version": "9.0",
            "support-phase": "active",
            "release-type": "sts",
            "latest-sdk": "9.0.306",
            "releases": [
                _release("9.0.10", sdk_9_306, [sdk_9_306, sdk_9_111]),
                _release("9.0.1", sdk_9_102, [sdk_9_102]),
                _release("9.0.0", sdk_9_100),
            ],
        },
        {
            "channel-version": "8.0",
            "support-phase": "active",
            "release-type": "lts",
            "latest-sdk": "8.0.415",
            "releases": [
                _release("8.0.21", sdk_8_415, [sdk_8_415, sdk_8_318, sdk_8_121]),
                _release("8.0.0", sdk_8_100, [sdk_8_100]),
            ],
        },
        {
            "channel-version": "6.0",
            "support-phase": "eol",
            "release-type": "lts",
            "latest-sdk": "6.0.428",
            "releases": [_release("6.0.36", sdk_6_428, [sdk_6_428])],
        },
    ]


class DictTransport:
    """Transport double serving JSON documents from a dict."""

    def __init__(self, documents: Dict[str, dict]):
        self.documents = documents
        self.requested = []

    def get_json(self, url: str):
        self.requested.append(url)
        return self.documents[url]


# ============================================================================
# Archive Builders
# ============================================================================


def tar_gz_bytes(files: Dict[str, Union[str, bytes]]) -> bytes:
    """Build an in-memory .tar.gz holding the given relative paths."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for name, content in files.items():
            data = content.encode() if isinstance(content, str) else content
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def reset_platform_cache():
    """Reset cached platform detection between tests."""
    clear_platform_cache()
    yield
    clear_platform_cache()


@pytest.fixture
def index_url() -> str:
    return INDEX_URL


@pytest.fixture
def sdk_record():
    """Factory for catalog SDK records."""
    return build_sdk_record


@pytest.fixture
def make_release_documents():
    """Factory turning channel dicts into index + channel documents."""
    return build_release_documents


@pytest.fixture
def release_documents() -> Dict[str, dict]:
    """Index and channel documents for the sample catalog."""
    return build_release_documents(sample_channels())


@pytest.fixture
def sample_catalog(release_documents):
    """The sample catalog parsed into Channel objects."""
    client = ReleaseCatalogClient(DictTransport(release_documents), INDEX_URL)
    return client.fetch_catalog()


@pytest.fixture
def make_catalog():
    """Factory parsing channel dicts into Channel objects."""

    def _make(channels):
        documents = build_release_documents(channels)
        return ReleaseCatalogClient(DictTransport(documents), INDEX_URL).fetch_catalog()

    return _make


@pytest.fixture
def install_config(tmp_path: Path) -> InstallerConfig:
    """Installer configuration rooted in a temporary directory."""
    return InstallerConfig(
        install_root=tmp_path / "dotnet",
        platform="linux-x64",
        releases_index_url=INDEX_URL,
        timeout=5,
        lock_timeout=2,
    )


@pytest.fixture
def make_archive():
    """Factory returning .tar.gz bytes for a mapping of path -> content."""
    return tar_gz_bytes


@pytest.fixture
def write_archive(tmp_path: Path):
    """Factory writing a .tar.gz file and returning its path."""

    def _write(files, name: str = "dotnet.tar.gz") -> Path:
        path = tmp_path / "archives" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(tar_gz_bytes(files))
        return path

    return _write


@pytest.fixture
def isolated_home(tmp_path: Path, monkeypatch) -> Path:
    """Create isolated home directory for tests."""
    fake_home = tmp_path / "home"
    fake_home.mkdir()

    monkeypatch.setenv("HOME", str(fake_home))
    monkeypatch.setenv("USERPROFILE", str(fake_home))
    monkeypatch.delenv("DOTNETKIT_HOME", raising=False)
    monkeypatch.delenv("DOTNETKIT_PLATFORM", raising=False)

    return fake_home
