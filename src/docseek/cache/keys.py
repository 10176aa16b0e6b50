"""Deterministic cache key construction."""

import hashlib
import json
from collections.abc import Mapping
from typing import Any, Union
from urllib.parse import quote


def compute_checksum(content: Union[str, bytes]) -> str:
    """SHA-256 hex digest of content."""
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest()


def build_cache_key(namespace: str, kind: str, url: str, options: Mapping[str, Any]) -> str:
    """
    Build a cache key from an operation's inputs.

    Every option that changes the operation's result must be passed in
    ``options``; two calls differing in any of them get different keys.
    Option order does not matter.

    Args:
        namespace: Key prefix shared by one cache
        kind: Operation kind (e.g. "basic", "tree")
        url: Target URL
        options: Behavior-affecting options (JSON-serializable)

    Returns:
        Key of the form "<namespace>:<kind>:<encoded url>:<options digest>"

    Example:
        build_cache_key("docseek", "tree", url, {"max_iterations": 3})
    """
    canonical = json.dumps(dict(options), sort_keys=True, separators=(",", ":"), default=str)
    digest = compute_checksum(canonical)[:16]
    return f"{namespace}:{kind}:{quote(url, safe='')}:{digest}"
