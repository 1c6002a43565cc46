"""
Release catalog access and version resolution.
"""

from .models import (
    SupportPhase,
    ReleaseType,
    PlatformFile,
    BuildDescriptor,
    Release,
    Channel,
    all_builds,
)
from .catalog import ReleaseCatalogClient
from .resolver import (
    ExpressionKind,
    VersionExpression,
    VersionResolver,
    parse_expression,
)
from .global_json import (
    find_global_json,
    read_sdk_version,
    resolve_project_expression,
)

__all__ = [
    "SupportPhase",
    "ReleaseType",
    "PlatformFile",
    "BuildDescriptor",
    "Release",
    "Channel",
    "all_builds",
    "ReleaseCatalogClient",
    "ExpressionKind",
    "VersionExpression",
    "VersionResolver",
    "parse_expression",
    "find_global_json",
    "read_sdk_version",
    "resolve_project_expression",
]
