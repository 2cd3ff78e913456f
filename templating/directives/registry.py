"""
Directive registry.

Maps directive names to handlers. The registry is owned by whoever builds the
templating subsystem and is passed explicitly to the matcher; there is no
module-level table.
"""

from __future__ import annotations

from threading import RLock
from typing import Dict, List, Optional, Tuple

from templating.constants import DIRECTIVE_NAME_PATTERN
from templating.exceptions import InvalidHandlerError, InvalidNameError
from templating.logger import UnifiedLogger

from .base import DirectiveDefinition, DirectiveHandler, DirectiveProcessor

# Create module logger
logger = UnifiedLogger(tag="directive-registry")


def validate_directive_name(name: object) -> str:
    """Return the name unchanged if it is a valid directive identifier.

    Raises:
        InvalidNameError: If the name is not a non-empty identifier
    """
    if not isinstance(name, str) or not DIRECTIVE_NAME_PATTERN.fullmatch(name):
        raise InvalidNameError(name)
    return name


class DirectiveRegistry:
    """Registry for directive handlers.

    Manages registration, lookup and listing of directives. Registration order
    is kept and drives the order in which the matcher processes names. Writes
    are lock-guarded so a host may register while another thread parses; the
    matcher works from a snapshot taken at the start of each parse.
    """

    def __init__(self):
        """Initialize an empty directive registry."""
        self._definitions: Dict[str, DirectiveDefinition] = {}
        self._lock = RLock()

    def register(self, name: str, handler: DirectiveHandler) -> None:
        """Register a handler under a directive name.

        A handler already registered under the same name is replaced; the
        name keeps its original position in the processing order.

        Args:
            name: Directive name, e.g. "admin"
            handler: Callable taking (params, body, scope) and returning text

        Raises:
            InvalidNameError: If the name is empty or not an identifier
            InvalidHandlerError: If the handler is not callable
        """
        validate_directive_name(name)
        if not callable(handler):
            raise InvalidHandlerError(f"Handler for directive '{name}' must be callable")

        with self._lock:
            if name in self._definitions:
                logger.debug("Overwriting directive handler", directive=name)
            self._definitions[name] = DirectiveDefinition(name=name, handler=handler)

    def register_processor(self, processor: DirectiveProcessor) -> None:
        """Register a class-based processor under its own name."""
        self.register(processor.get_directive_name(), processor)

    def unregister(self, name: str) -> bool:
        """Remove a directive. Returns True if it was registered."""
        with self._lock:
            return self._definitions.pop(name, None) is not None

    def get(self, name: str) -> Optional[DirectiveHandler]:
        """Get the handler for a directive, or None if not registered."""
        with self._lock:
            definition = self._definitions.get(name)
        return definition.handler if definition else None

    def list(self) -> List[str]:
        """Get all registered directive names in registration order."""
        with self._lock:
            return [name for name in self._definitions]

    def snapshot(self) -> Tuple[DirectiveDefinition, ...]:
        """Return the current definitions in registration order."""
        with self._lock:
            return tuple(self._definitions.values())

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._definitions

    def __len__(self) -> int:
        with self._lock:
            return len(self._definitions)
