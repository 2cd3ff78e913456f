"""
Render result cache.

Optional wrapper that memoizes `render(source, variables)` keyed by a hash of
the source, a fingerprint of the variables and an optional host `vary` value
(typically a fingerprint of the current identity). The core never consults
it; hosts wrap an engine when they want memoization.
"""

from __future__ import annotations

from collections import OrderedDict
from threading import Lock
from typing import Any, Callable, Mapping, Optional, Protocol, Tuple

from templating.constants import DEFAULT_CACHE_SIZE
from templating.logger import UnifiedLogger
from templating.utils.hash import fingerprint_variables, hash_text

logger = UnifiedLogger(tag="render-cache")

CacheKey = Tuple[str, str, str]


class Renderer(Protocol):
    def render(self, source: str, variables: Optional[Mapping[str, Any]] = None) -> str:
        ...


class RenderCache:
    """Bounded LRU cache in front of a renderer.

    Args:
        renderer: Anything with render(source, variables)
        max_entries: Cache capacity; 0 disables caching
        vary: Optional callable whose string result is part of the key
    """

    def __init__(
        self,
        renderer: Renderer,
        max_entries: int = DEFAULT_CACHE_SIZE,
        vary: Optional[Callable[[], str]] = None,
    ):
        if max_entries < 0:
            raise ValueError("max_entries cannot be negative")
        self.renderer = renderer
        self.max_entries = max_entries
        self.vary = vary
        self.hits = 0
        self.misses = 0
        self._entries: "OrderedDict[CacheKey, str]" = OrderedDict()
        self._lock = Lock()

    def _key(self, source: str, variables: Optional[Mapping[str, Any]]) -> Optional[CacheKey]:
        try:
            variables_key = fingerprint_variables(variables)
        except (TypeError, ValueError, RecursionError):
            logger.debug("Variables not fingerprintable; bypassing render cache")
            return None
        vary_key = str(self.vary()) if self.vary is not None else ""
        return hash_text(source), variables_key, vary_key

    def render(self, source: str, variables: Optional[Mapping[str, Any]] = None) -> str:
        """Return a cached render or render and remember the result."""
        key = self._key(source, variables) if self.max_entries else None
        if key is None:
            return self.renderer.render(source, variables)

        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
                self.hits += 1
                return self._entries[key]
            self.misses += 1

        result = self.renderer.render(source, variables)

        with self._lock:
            self._entries[key] = result
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
        return result

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
