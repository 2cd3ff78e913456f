"""
Content filter hooks.

Hosts can rewrite template text at three points of a render:

- `before_parse`: source text after preamble capture, before directives
- `parsed_content`: output of the directive matcher
- `after_parse`: final text after interpolation

Filters run in ascending priority, then registration order, and receive
`(content, scope)`; each must return the (possibly rewritten) content.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import count
from typing import Callable, Dict, List

from templating.scope import Scope

BEFORE_PARSE = "before_parse"
PARSED_CONTENT = "parsed_content"
AFTER_PARSE = "after_parse"

HOOK_NAMES = (BEFORE_PARSE, PARSED_CONTENT, AFTER_PARSE)

ContentFilter = Callable[[str, Scope], str]


@dataclass(frozen=True)
class _RegisteredFilter:
    priority: int
    sequence: int
    callback: ContentFilter


class FilterHooks:
    """Ordered content filters keyed by hook name."""

    def __init__(self):
        self._filters: Dict[str, List[_RegisteredFilter]] = {name: [] for name in HOOK_NAMES}
        self._sequence = count()

    def _bucket(self, hook: str) -> List[_RegisteredFilter]:
        if hook not in self._filters:
            raise ValueError(f"Unknown hook '{hook}'. Valid hooks: {', '.join(HOOK_NAMES)}")
        return self._filters[hook]

    def add(self, hook: str, callback: ContentFilter, priority: int = 10) -> None:
        """Attach a filter to a hook."""
        if not callable(callback):
            raise TypeError("Filter callback must be callable")
        bucket = self._bucket(hook)
        bucket.append(_RegisteredFilter(priority, next(self._sequence), callback))
        bucket.sort(key=lambda entry: (entry.priority, entry.sequence))

    def remove(self, hook: str, callback: ContentFilter) -> bool:
        """Detach a filter. Returns True if it was attached."""
        bucket = self._bucket(hook)
        for entry in bucket:
            if entry.callback == callback:
                bucket.remove(entry)
                return True
        return False

    def apply(self, hook: str, content: str, scope: Scope) -> str:
        """Run every filter attached to a hook over the content."""
        for entry in list(self._bucket(hook)):
            content = entry.callback(content, scope)
            if not isinstance(content, str):
                raise TypeError(f"Filter on '{hook}' returned {type(content).__name__}, expected str")
        return content

    def has_filters(self, hook: str) -> bool:
        return bool(self._bucket(hook))
