"""
Template engine facade.

Wires the registry, evaluator, matcher, pipeline and built-in directives
together for a host. The host supplies its identity provider and, optionally,
directive contributors; everything else comes from settings.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping, Optional

from templating.cache import RenderCache
from templating.directives.bootstrap import register_builtin_directives
from templating.directives.base import DirectiveHandler
from templating.directives.matcher import DirectiveMatcher
from templating.directives.plugins import DirectiveContributor, load_directive_plugins
from templating.directives.registry import DirectiveRegistry
from templating.expressions import ExpressionEvaluator
from templating.hooks import FilterHooks
from templating.identity import IdentityProvider
from templating.interpolation import Interpolator
from templating.logger import UnifiedLogger
from templating.pipeline import TemplateRenderer
from templating.preamble import PreambleEvaluator
from templating.scope import Scope
from templating.settings.store import TemplatingSettings, load_settings

logger = UnifiedLogger(tag="template-engine")


class TemplateEngine:
    """Directive templating for one host.

    Built-ins are registered first, then contributors (callables, plugin
    modules, entry points). Contributors may replace built-ins by registering
    the same name. Register everything before the first render; later
    registrations are safe but take effect from the next parse.

    Args:
        identity: Host identity provider for the access directives
        settings: Templating settings (loaded from settings.yaml if omitted)
        registry: Registry to populate (a new one if omitted)
        logger: Collaborator receiving per-occurrence failures
        contributors: Callables invoked as contributor(registry)
        plugin_modules: Overrides settings.plugin_modules
        load_entry_points: Overrides settings.load_entry_points
    """

    def __init__(
        self,
        identity: IdentityProvider,
        *,
        settings: Optional[TemplatingSettings] = None,
        registry: Optional[DirectiveRegistry] = None,
        logger: Optional[Any] = None,
        contributors: Iterable[DirectiveContributor] = (),
        plugin_modules: Optional[Iterable[str]] = None,
        load_entry_points: Optional[bool] = None,
    ):
        self.settings = settings if settings is not None else load_settings()
        self.identity = identity
        self.registry = registry if registry is not None else DirectiveRegistry()
        self.evaluator = ExpressionEvaluator(strict=self.settings.strict_variables)
        self.hooks = FilterHooks()

        self.matcher = DirectiveMatcher(self.registry, logger=logger, max_passes=self.settings.max_passes)
        self.renderer = TemplateRenderer(
            self.matcher,
            preamble=PreambleEvaluator(self.evaluator, logger=logger) if self.settings.preamble else None,
            interpolator=Interpolator(self.evaluator, logger=logger) if self.settings.interpolation else None,
            hooks=self.hooks,
        )

        register_builtin_directives(
            self.registry,
            identity=identity,
            evaluator=self.evaluator,
            render_body=self.renderer.render_fragment,
            names=self.settings.builtins,
        )

        if load_entry_points is None:
            load_entry_points = self.settings.load_entry_points
        self.plugin_warnings = _load_plugins(
            self.registry,
            contributors=contributors,
            module_paths=list(self.settings.plugin_modules if plugin_modules is None else plugin_modules),
            entry_point_group=self.settings.entry_point_group if load_entry_points else None,
        )

        _log_engine_ready(self)

    def add_directive(self, name: str, handler: DirectiveHandler) -> None:
        """Register a custom directive.

        Raises:
            InvalidNameError: If the name is not a valid identifier
        """
        self.registry.register(name, handler)

    def parse(self, content: str, variables: Optional[Mapping[str, Any]] = None) -> str:
        """Resolve directives only: no preamble, no interpolation."""
        return self.renderer.parse(content, Scope(variables))

    def render(self, source: str, variables: Optional[Mapping[str, Any]] = None) -> str:
        """Run the full pipeline over template source."""
        return self.renderer.render(source, variables)

    def evaluate_expression(self, expression: str, variables: Optional[Mapping[str, Any]] = None) -> Any:
        """Evaluate an expression with the engine's evaluator.

        Raises:
            ExpressionError: If the expression is malformed or fails
        """
        return self.evaluator.evaluate(expression, Scope(variables))

    def cached(self, vary: Optional[Callable[[], str]] = None) -> RenderCache:
        """Wrap this engine in a RenderCache sized by the cache_size setting.

        Pass `vary` when output depends on the visitor, e.g. an identity
        fingerprint, so different visitors never share an entry.
        """
        return RenderCache(self, max_entries=self.settings.cache_size, vary=vary)


def _log_engine_ready(engine: TemplateEngine) -> None:
    logger.info(
        "Template engine ready",
        directives=engine.registry.list(),
        plugin_warnings=len(engine.plugin_warnings),
    )


def _load_plugins(
    registry: DirectiveRegistry,
    *,
    contributors: Iterable[DirectiveContributor],
    module_paths: list[str],
    entry_point_group: Optional[str],
) -> tuple[str, ...]:
    with logger.span("load_plugins", modules=module_paths, entry_point_group=entry_point_group):
        return load_directive_plugins(
            registry=registry,
            contributors=contributors,
            module_paths=module_paths,
            entry_point_group=entry_point_group,
        )
