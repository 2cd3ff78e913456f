"""
Variable scope for a single render.

A Scope exposes host-supplied data to directive handlers and expressions.
Iteration directives derive child scopes; writes to a child never reach its
parent, and expressions only ever see a read-only view.
"""

from __future__ import annotations

from collections import ChainMap
from collections.abc import Iterator, Mapping, MutableMapping
from types import MappingProxyType
from typing import Any, Dict, Optional


class Scope(MutableMapping):
    """Mutable name -> value mapping owned by one in-flight render."""

    def __init__(self, variables: Optional[Mapping[str, Any]] = None):
        """Create a fresh scope from a shallow copy of the given variables."""
        self._chain: ChainMap = ChainMap(dict(variables or {}))

    @classmethod
    def _from_chain(cls, chain: ChainMap) -> "Scope":
        scope = cls.__new__(cls)
        scope._chain = chain
        return scope

    def child(self, bindings: Optional[Mapping[str, Any]] = None) -> "Scope":
        """Return a derived scope layered over this one.

        Args:
            bindings: Names bound only in the child (they shadow the parent)

        Returns:
            New Scope; writes land in the child's own layer
        """
        return Scope._from_chain(self._chain.new_child(dict(bindings or {})))

    def view(self) -> Mapping[str, Any]:
        """Return a read-only view of the current bindings."""
        return MappingProxyType(self._chain)

    def to_dict(self) -> Dict[str, Any]:
        """Flatten the scope into a plain dict (child bindings win)."""
        return dict(self._chain)

    @property
    def depth(self) -> int:
        """Number of layers, 1 for a root scope."""
        return len(self._chain.maps)

    def __getitem__(self, name: str) -> Any:
        return self._chain[name]

    def __setitem__(self, name: str, value: Any) -> None:
        self._chain[name] = value

    def __delitem__(self, name: str) -> None:
        # Only the innermost layer is writable
        del self._chain[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._chain)

    def __len__(self) -> int:
        return len(self._chain)

    def __repr__(self) -> str:
        return f"Scope({self.to_dict()!r}, depth={self.depth})"
