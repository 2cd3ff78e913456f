"""
Base types for directive handlers.

A handler is any callable `(params, body, scope) -> str`. DirectiveProcessor
is the class-based form used by the built-ins: it carries its own name and is
callable like a plain handler.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional

from templating.scope import Scope


DirectiveHandler = Callable[[str, str, Scope], Any]


@dataclass(frozen=True)
class DirectiveDefinition:
    """A registered directive: its name and the handler bound to it."""
    name: str
    handler: DirectiveHandler


@dataclass(frozen=True)
class DirectiveOccurrence:
    """One matched `@name(params) body @/name` instance.

    Offsets index into the content as it was when the occurrence was found.
    """
    name: str
    raw_params: Optional[str]
    body: str
    start: int
    end: int

    @property
    def params(self) -> str:
        """Parameter text as handed to handlers ("" when no parentheses)."""
        return self.raw_params if self.raw_params is not None else ""


class DirectiveProcessor(ABC):
    """Base class for class-based directive handlers.

    Each directive type (admin, each, if, ...) implements this interface to
    provide its name and rendering logic.
    """

    @abstractmethod
    def get_directive_name(self) -> str:
        """Return the name of the directive this processor handles.

        Returns:
            The directive name (e.g., "admin", "each", "if")
        """
        pass

    @abstractmethod
    def render(self, params: str, body: str, scope: Scope) -> str:
        """Produce the replacement text for one occurrence.

        Args:
            params: Raw parameter text between the parentheses ("" if none)
            body: Inner text between the open and close tags
            scope: Variables for the current render (read, never mutate)

        Returns:
            Replacement text

        Raises:
            ExpressionError: If the parameters cannot be evaluated
        """
        pass

    def __call__(self, params: str, body: str, scope: Scope) -> str:
        return self.render(params, body, scope)


def is_empty_params(params: str) -> bool:
    """Check if directive parameters are missing or whitespace-only."""
    return not params or not params.strip()
