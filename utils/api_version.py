"""
Helpers for path-based API versioning: /<prefix>/v<N>/...

These take their settings as arguments; api/versioning.py feeds them the app
config.
"""
from __future__ import annotations

import re

VERSION_PATTERN = re.compile(r"^v\d+$")


def get_api_prefix(prefix_enabled: bool, prefix: str = "/api") -> str:
    """'/api' style prefix when enabled, else ''."""
    if not prefix_enabled:
        return ""
    return "/" + prefix.strip("/")


def extract_version(path: str, prefix: str = "") -> str | None:
    """
    Version segment of a request path, or None.

    With prefix '/api', '/api/v1/users' -> 'v1'. A path outside the prefix is
    still inspected from its first segment, so '/v1/users' resolves either way.
    """
    if prefix and (path == prefix or path.startswith(prefix + "/")):
        path = path[len(prefix):]
    parts = path.split("/")
    if len(parts) < 2:
        return None
    candidate = parts[1]
    if VERSION_PATTERN.match(candidate):
        return candidate
    return None
