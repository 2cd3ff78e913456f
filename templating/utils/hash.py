"""Hash utilities used for render cache keys."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from typing import Any


def _truncate_digest(digest: str, length: int | None) -> str:
    if length is None:
        return digest
    return digest[:length]


def hash_bytes(content: bytes, length: int | None = 16) -> str:
    """Create a SHA256 hash for binary content."""
    digest = hashlib.sha256(content).hexdigest()
    return _truncate_digest(digest, length)


def hash_text(content: str, length: int | None = 16) -> str:
    """Create a hash of template source for unique identification.

    Args:
        content: Template text to hash.
        length: Optional output length. Use None for full hash.

    Returns:
        SHA256 hash (optionally truncated).
    """
    return hash_bytes(content.encode("utf-8"), length=length)


def _canonical(value: Any, active: set[int]) -> Any:
    """Encode a value as tagged JSON data that keeps key and container types."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return [type(value).__name__, value]

    if isinstance(value, (Mapping, list, tuple)):
        marker = id(value)
        if marker in active:
            raise ValueError("Cannot fingerprint a self-referencing value")
        active.add(marker)
        try:
            if isinstance(value, Mapping):
                entries = [(_canonical(key, active), _canonical(item, active)) for key, item in value.items()]
                entries.sort(key=lambda entry: json.dumps(entry[0], ensure_ascii=False))
                return ["mapping", [list(entry) for entry in entries]]
            return [type(value).__name__, [_canonical(item, active) for item in value]]
        finally:
            active.discard(marker)

    raise TypeError(f"Cannot fingerprint value of type {type(value).__name__}")


def fingerprint_variables(variables: Mapping[str, Any] | None, length: int | None = 16) -> str:
    """Create a stable fingerprint for a variables mapping.

    Keys are sorted so insertion order does not matter, while key and
    container types are kept: `{1: x}` and `{"1": x}` differ, as do a list
    and a tuple. Values must be strings, numbers, booleans, None, lists,
    tuples or mappings.

    Raises:
        TypeError: If a value cannot be fingerprinted.
        ValueError: If a value contains itself.
    """
    payload = json.dumps(_canonical(dict(variables or {}), set()), ensure_ascii=False, separators=(",", ":"))
    return hash_text(payload, length=length)
