"""
Identity provider contract.

Built-in access directives only ever ask these four questions; how the host
answers them (CMS session, request headers, fixtures) is not the core's
concern.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Protocol, runtime_checkable


@runtime_checkable
class IdentityProvider(Protocol):
    """Boolean queries about the current visitor."""

    def is_admin(self) -> bool:
        ...

    def is_logged_in(self) -> bool:
        ...

    def has_role(self, name: str) -> bool:
        ...

    def has_capability(self, name: str) -> bool:
        ...


@dataclass(frozen=True)
class StaticIdentity:
    """Identity provider backed by fixed values.

    Useful for hosts that resolve the visitor once per request, and for tests.
    The default instance is an anonymous guest.
    """

    logged_in: bool = False
    admin: bool = False
    roles: FrozenSet[str] = field(default_factory=frozenset)
    capabilities: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        # Accept any iterable of names for convenience
        object.__setattr__(self, "roles", frozenset(self.roles))
        object.__setattr__(self, "capabilities", frozenset(self.capabilities))

    def is_admin(self) -> bool:
        return self.admin

    def is_logged_in(self) -> bool:
        return self.logged_in or self.admin

    def has_role(self, name: str) -> bool:
        return name in self.roles

    def has_capability(self, name: str) -> bool:
        return name in self.capabilities

    @classmethod
    def guest(cls) -> "StaticIdentity":
        return cls()

    @classmethod
    def administrator(cls) -> "StaticIdentity":
        return cls(
            logged_in=True,
            admin=True,
            roles=frozenset({"administrator"}),
            capabilities=frozenset({"manage_options"}),
        )
