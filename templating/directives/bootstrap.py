"""
Helpers for registering built-in directive processors.

Provides an explicit entry point for wiring the default directive set into a
registry owned by the caller.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, Optional

from templating.constants import DEFAULT_BUILTIN_DIRECTIVES
from templating.exceptions import InvalidNameError
from templating.expressions import ExpressionEvaluator
from templating.identity import IdentityProvider
from templating.logger import UnifiedLogger

from .access import AdminDirective, CapabilityDirective, GuestDirective, RoleDirective, UserDirective
from .base import DirectiveProcessor
from .control import BodyRenderer, EachDirective, IfDirective
from .registry import DirectiveRegistry

logger = UnifiedLogger(tag="directive-bootstrap")


def _builtin_factories(
    identity: IdentityProvider,
    evaluator: ExpressionEvaluator,
    render_body: BodyRenderer,
) -> Dict[str, Callable[[], DirectiveProcessor]]:
    return {
        "admin": lambda: AdminDirective(identity),
        "user": lambda: UserDirective(identity),
        "role": lambda: RoleDirective(identity, evaluator),
        "can": lambda: CapabilityDirective(identity, evaluator),
        "guest": lambda: GuestDirective(identity),
        "each": lambda: EachDirective(evaluator, render_body),
        "if": lambda: IfDirective(evaluator),
    }


def register_builtin_directives(
    registry: DirectiveRegistry,
    *,
    identity: IdentityProvider,
    evaluator: ExpressionEvaluator,
    render_body: BodyRenderer,
    names: Optional[Iterable[str]] = None,
) -> list[str]:
    """Register the built-in directive processors with a registry.

    Args:
        registry: Registry to populate
        identity: Host identity provider used by the access directives
        evaluator: Expression evaluator for role/can/if/each parameters
        render_body: Renders an @each body against an iteration scope
        names: Built-ins to register, in order (defaults to all, in
            DEFAULT_BUILTIN_DIRECTIVES order)

    Returns:
        Names registered, in registration order

    Raises:
        InvalidNameError: If a requested built-in does not exist
    """
    factories = _builtin_factories(identity, evaluator, render_body)
    requested = list(DEFAULT_BUILTIN_DIRECTIVES if names is None else names)

    registered: list[str] = []
    for name in requested:
        factory = factories.get(name)
        if factory is None:
            logger.error("Unknown built-in directive requested", directive=name)
            raise InvalidNameError(name)

        registry.register_processor(factory())
        registered.append(name)

    logger.debug("Registered built-in directives", directives=registered)
    return registered
