"""
Directive package.

Import specific pieces from their dedicated modules, e.g.:
- `templating.directives.registry`
- `templating.directives.matcher`
- `templating.directives.bootstrap`
"""

__all__: list[str] = []
