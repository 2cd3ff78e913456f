"""
Exception hierarchy for the templating package.

Registration errors surface immediately to the caller. Expression and handler
errors are raised inside a render and caught per directive occurrence.
"""

from typing import Optional


class TemplatingError(Exception):
    """Base exception for templating errors."""
    pass


#######################################################################
## Registry Errors
#######################################################################

class DirectiveRegistryError(TemplatingError):
    """Base exception for directive registry errors."""
    pass


class InvalidNameError(DirectiveRegistryError):
    """Raised when a directive name is empty or not a valid identifier."""

    def __init__(self, name: object):
        self.name = name
        super().__init__(
            f"Invalid directive name {name!r}: expected an identifier "
            f"matching [A-Za-z_][A-Za-z0-9_]*"
        )


class InvalidHandlerError(DirectiveRegistryError):
    """Raised when a directive handler is not callable."""
    pass


#######################################################################
## Evaluation Errors
#######################################################################

class ExpressionError(TemplatingError):
    """Raised when an expression is malformed, unsafe or fails to evaluate."""

    def __init__(self, message: str, expression: str = "", position: Optional[int] = None):
        self.message = message
        self.expression = expression
        self.position = position
        detail = message
        if expression:
            detail = f"{message} in expression {expression!r}"
            if position is not None:
                detail = f"{detail} at position {position}"
        super().__init__(detail)


class HandlerError(TemplatingError):
    """Raised when a directive handler fails for any other reason."""

    def __init__(self, directive_name: str, message: str):
        self.directive_name = directive_name
        super().__init__(f"Directive '@{directive_name}' failed: {message}")


#######################################################################
## Setup Errors
#######################################################################

class PluginLoadError(TemplatingError):
    """Raised when a directive plugin cannot be resolved."""
    pass


class SettingsError(TemplatingError):
    """Raised when templating settings are missing or invalid."""
    pass
