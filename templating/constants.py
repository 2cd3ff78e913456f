"""
Core templating constants.

Only true invariants and defaults live here. Deployment-specific values come
from the settings file (templating.settings.store).
"""

from __future__ import annotations

import re


# Directive names are plain identifiers
DIRECTIVE_NAME_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')

# Any directive-looking token; marks the end of the preamble
DIRECTIVE_TOKEN_PATTERN = re.compile(r'@[A-Za-z_][A-Za-z0-9_]*')

# Registration order matters: each runs before if so loop bodies see loop variables
DEFAULT_BUILTIN_DIRECTIVES = ('admin', 'user', 'role', 'can', 'guest', 'each', 'if')

# Upper bound on re-scans of one directive name during a single parse
DEFAULT_MAX_PASSES = 16

# Bounded LRU sizes
DEFAULT_CACHE_SIZE = 128
EXPRESSION_CACHE_SIZE = 256

# Largest string or list an expression may build with `*`
MAX_REPEAT_LENGTH = 1_000_000

# Names bound in each iteration's child scope
LOOP_KEY_NAME = 'key'
LOOP_VALUE_NAME = 'value'
LOOP_INDEX_NAME = 'index'

# Contribution point for third-party directives
DEFAULT_ENTRY_POINT_GROUP = 'templating.directives'
PLUGIN_API_VERSION = 1
PLUGIN_REGISTER_FUNCTION = 'register_directives'

# Environment variable pointing at a settings.yaml
SETTINGS_ENV_VAR = 'TEMPLATING_SETTINGS'
