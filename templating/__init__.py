"""
Directive templating.

Resolves `@name(params) body @/name` directives in text against a registry
of handlers and a variable scope. Hosts usually only need TemplateEngine.
"""

from .cache import RenderCache
from .directives.base import DirectiveOccurrence, DirectiveProcessor
from .directives.registry import DirectiveRegistry
from .engine import TemplateEngine
from .exceptions import (
    DirectiveRegistryError,
    ExpressionError,
    HandlerError,
    InvalidHandlerError,
    InvalidNameError,
    PluginLoadError,
    SettingsError,
    TemplatingError,
)
from .expressions import ExpressionEvaluator
from .identity import IdentityProvider, StaticIdentity
from .scope import Scope

__all__ = [
    "DirectiveOccurrence",
    "DirectiveProcessor",
    "DirectiveRegistry",
    "DirectiveRegistryError",
    "ExpressionError",
    "ExpressionEvaluator",
    "HandlerError",
    "IdentityProvider",
    "InvalidHandlerError",
    "InvalidNameError",
    "PluginLoadError",
    "RenderCache",
    "Scope",
    "SettingsError",
    "StaticIdentity",
    "TemplateEngine",
    "TemplatingError",
]
