"""
Version expression parsing and resolution.

Accepted expressions:

- Exact version:   "9.0.100", "10.0.100-rc.2.25502.107"
- Major only:      "9"        (highest 9.x.y SDK)
- Minor wildcard:  "9.0.x"    (highest 9.0.y SDK)
- Feature band:    "9.0.1xx"  (highest 9.0.1nn SDK)
- "latest":        latest SDK of the first active channel
- "lts":           latest SDK of the first active LTS channel

Resolution applies one rule per expression kind. Every rule returns an
optional build; the resolver raises only when the rule finds nothing.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

from dotnetkit.core.exceptions import InvalidExpressionError, NoMatchingBuildError
from dotnetkit.core.version import SemanticVersion
from dotnetkit.releases.models import BuildDescriptor, Channel, all_builds

logger = logging.getLogger(__name__)

_MAJOR_RE = re.compile(r"^(0|[1-9]\d*)$")
_MINOR_WILDCARD_RE = re.compile(r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.x$", re.IGNORECASE)
_FEATURE_BAND_RE = re.compile(r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.([1-9]\d*)xx$", re.IGNORECASE)

# SDK patch numbers start at 100; anything lower is a runtime version
MIN_SDK_PATCH = 100


class ExpressionKind(Enum):
    EXACT = "exact"
    LATEST = "latest"
    LTS = "lts"
    MAJOR = "major"
    MINOR_WILDCARD = "minor-wildcard"
    FEATURE_BAND = "feature-band"


@dataclass(frozen=True)
class VersionExpression:
    """A validated version request."""

    text: str
    kind: ExpressionKind
    version: Optional[SemanticVersion] = None
    major: Optional[int] = None
    minor: Optional[int] = None
    band: Optional[int] = None

    @property
    def is_exact(self) -> bool:
        return self.kind == ExpressionKind.EXACT

    def __str__(self) -> str:
        return self.text


def parse_expression(text: str) -> VersionExpression:
    """
    Validate and parse a version expression.

    Args:
        text: Raw user input

    Returns:
        Parsed expression

    Raises:
        InvalidExpressionError: If text matches none of the accepted shapes,
            or names a runtime rather than an SDK version

    Example:
        >>> parse_expression("9.0.1xx").band
        1
    """
    if text is None:
        raise InvalidExpressionError("", "no version given")

    raw = text.strip()
    lowered = raw.lower()

    if lowered == "latest":
        return VersionExpression(raw, ExpressionKind.LATEST)
    if lowered == "lts":
        return VersionExpression(raw, ExpressionKind.LTS)

    match = _MAJOR_RE.match(raw)
    if match:
        return VersionExpression(raw, ExpressionKind.MAJOR, major=int(match.group(1)))

    match = _MINOR_WILDCARD_RE.match(raw)
    if match:
        return VersionExpression(
            raw,
            ExpressionKind.MINOR_WILDCARD,
            major=int(match.group(1)),
            minor=int(match.group(2)),
        )

    match = _FEATURE_BAND_RE.match(raw)
    if match:
        return VersionExpression(
            raw,
            ExpressionKind.FEATURE_BAND,
            major=int(match.group(1)),
            minor=int(match.group(2)),
            band=int(match.group(3)),
        )

    version = SemanticVersion.try_parse(raw)
    if version is None:
        raise InvalidExpressionError(raw)

    if version.patch < MIN_SDK_PATCH:
        raise InvalidExpressionError(
            raw,
            "this is a runtime version; only .NET SDK versions (patch >= 100) "
            "can be installed",
        )

    return VersionExpression(
        raw,
        ExpressionKind.EXACT,
        version=version,
        major=version.major,
        minor=version.minor,
    )


class VersionResolver:
    """
    Maps a version expression onto exactly one build in a catalog snapshot.

    Example:
        >>> resolver = VersionResolver()
        >>> build = resolver.resolve(parse_expression("9.0.x"), catalog)
        >>> str(build.version)
        '9.0.306'
    """

    def __init__(self):
        self._rules: Dict[
            ExpressionKind,
            Callable[[VersionExpression, List[Channel]], Optional[BuildDescriptor]],
        ] = {
            ExpressionKind.EXACT: self._match_exact,
            ExpressionKind.LATEST: self._match_latest,
            ExpressionKind.LTS: self._match_lts,
            ExpressionKind.MAJOR: self._match_major,
            ExpressionKind.MINOR_WILDCARD: self._match_minor_wildcard,
            ExpressionKind.FEATURE_BAND: self._match_feature_band,
        }

    def resolve(
        self, expression: VersionExpression, catalog: List[Channel]
    ) -> BuildDescriptor:
        """
        Resolve an expression against a catalog.

        Raises:
            NoMatchingBuildError: If no build satisfies the expression
        """
        build = self._rules[expression.kind](expression, catalog)
        if build is None:
            raise NoMatchingBuildError(
                f"Could not find a .NET SDK release matching '{expression}'"
            )

        logger.debug(f"Resolved '{expression}' to {build.version}")
        return build

    def resolve_text(self, text: str, catalog: List[Channel]) -> BuildDescriptor:
        """Parse and resolve in one call."""
        return self.resolve(parse_expression(text), catalog)

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    @staticmethod
    def _match_exact(
        expression: VersionExpression, catalog: List[Channel]
    ) -> Optional[BuildDescriptor]:
        target = expression.version

        for channel in catalog:
            for build in channel.primary_builds():
                if build.version == target:
                    return build

        for channel in catalog:
            for build in channel.secondary_builds():
                if build.version == target:
                    return build

        # Display strings are not always identical to the canonical version
        for build in all_builds(catalog):
            if build.display_version == expression.text:
                return build
            display = SemanticVersion.try_parse(build.display_version)
            if display is not None and display == target:
                return build

        return None

    @staticmethod
    def _latest_of_channel(
        catalog: List[Channel], lts_only: bool
    ) -> Optional[BuildDescriptor]:
        channel = next(
            (c for c in catalog if c.is_active and (c.is_lts or not lts_only)),
            None,
        )
        if channel is None:
            logger.debug("No active channel found" + (" (LTS)" if lts_only else ""))
            return None

        latest = SemanticVersion.try_parse(channel.latest_sdk)
        if latest is None:
            logger.warning(
                f"Channel {channel.channel_version} has unparseable latest SDK "
                f"'{channel.latest_sdk}'"
            )
            return None

        return next((b for b in channel.builds() if b.version == latest), None)

    def _match_latest(
        self, expression: VersionExpression, catalog: List[Channel]
    ) -> Optional[BuildDescriptor]:
        return self._latest_of_channel(catalog, lts_only=False)

    def _match_lts(
        self, expression: VersionExpression, catalog: List[Channel]
    ) -> Optional[BuildDescriptor]:
        return self._latest_of_channel(catalog, lts_only=True)

    @staticmethod
    def _highest(
        builds: Iterable[BuildDescriptor],
        predicate: Callable[[SemanticVersion], bool],
    ) -> Optional[BuildDescriptor]:
        ordered = sorted(builds, key=lambda b: b.version, reverse=True)
        return next((b for b in ordered if predicate(b.version)), None)

    def _match_major(
        self, expression: VersionExpression, catalog: List[Channel]
    ) -> Optional[BuildDescriptor]:
        return self._highest(
            all_builds(catalog), lambda v: v.major == expression.major
        )

    def _match_minor_wildcard(
        self, expression: VersionExpression, catalog: List[Channel]
    ) -> Optional[BuildDescriptor]:
        return self._highest(
            all_builds(catalog),
            lambda v: v.major == expression.major and v.minor == expression.minor,
        )

    def _match_feature_band(
        self, expression: VersionExpression, catalog: List[Channel]
    ) -> Optional[BuildDescriptor]:
        return self._highest(
            all_builds(catalog),
            lambda v: v.major == expression.major
            and v.minor == expression.minor
            and v.feature_band == expression.band,
        )
