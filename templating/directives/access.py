"""
Access directive processors.

Show or hide their body based on the current visitor, as answered by the
host's identity provider:

    @admin Edit page @/admin
    @user Welcome back @/user
    @guest Please log in @/guest
    @role('editor') Review queue @/role
    @can($required_capability) Export @/can
"""

from abc import abstractmethod

from templating.expressions import ExpressionEvaluator
from templating.identity import IdentityProvider
from templating.scope import Scope

from .base import DirectiveProcessor, is_empty_params


class AdminDirective(DirectiveProcessor):
    """Body is shown only to administrators."""

    def __init__(self, identity: IdentityProvider):
        self.identity = identity

    def get_directive_name(self) -> str:
        return "admin"

    def render(self, params: str, body: str, scope: Scope) -> str:
        return body if self.identity.is_admin() else ""


class UserDirective(DirectiveProcessor):
    """Body is shown only to logged-in visitors."""

    def __init__(self, identity: IdentityProvider):
        self.identity = identity

    def get_directive_name(self) -> str:
        return "user"

    def render(self, params: str, body: str, scope: Scope) -> str:
        return body if self.identity.is_logged_in() else ""


class GuestDirective(DirectiveProcessor):
    """Body is shown only to visitors who are not logged in."""

    def __init__(self, identity: IdentityProvider):
        self.identity = identity

    def get_directive_name(self) -> str:
        return "guest"

    def render(self, params: str, body: str, scope: Scope) -> str:
        return "" if self.identity.is_logged_in() else body


class _GatedDirective(DirectiveProcessor):
    """Shared shape for directives whose parameter names what to check."""

    def __init__(self, identity: IdentityProvider, evaluator: ExpressionEvaluator):
        self.identity = identity
        self.evaluator = evaluator

    @abstractmethod
    def check(self, name: str) -> bool:
        """Return True when the visitor satisfies the named requirement."""
        pass

    def render(self, params: str, body: str, scope: Scope) -> str:
        """Evaluate the parameter to a name and gate the body on it.

        Empty parameters or a falsy value hide the body.

        Raises:
            ExpressionError: If the parameter expression is invalid
        """
        if is_empty_params(params):
            return ""

        value = self.evaluator.evaluate(params, scope)
        if not value:
            return ""
        return body if self.check(str(value)) else ""


class RoleDirective(_GatedDirective):
    """Body is shown when the visitor holds the named role."""

    def get_directive_name(self) -> str:
        return "role"

    def check(self, name: str) -> bool:
        return self.identity.has_role(name)


class CapabilityDirective(_GatedDirective):
    """Body is shown when the visitor has the named capability."""

    def get_directive_name(self) -> str:
        return "can"

    def check(self, name: str) -> bool:
        return self.identity.has_capability(name)
