"""
paramctx - Convention-based dependency injection context

A named-parameter store combined with an invocation engine that calls
arbitrary callables by matching their declared parameter names.

Key Features:
- Injection by parameter name, with call-site overrides
- Memoized signature introspection with explicit-name override
- Callback-style, direct-return and awaitable callables behind one
  future-based interface
- Cheap child contexts with independent parameter copies
- Diagnostic listeners for observability
"""

__version__ = "1.0.0"

from .core import (
    CONTEXT_KEY,
    Context,
)

from .introspection import (
    DEFAULT_CALLBACK_NAMES,
    Annotation,
    SignatureIntrospector,
    parse_signature,
)

from .decorators import (
    inject_names,
)

from .diagnostics import (
    ContextDiagnostics,
    ContextEvent,
    ContextEventType,
    ConsoleDiagnosticListener,
    DiagnosticListener,
)

from .config import (
    ConfigLoader,
    ContextOptions,
)

from .errors import (
    ContextError,
    SignatureParseError,
    CallbackError,
    ConfigError,
)

__all__ = [
    # Core types
    "Context",
    "CONTEXT_KEY",

    # Introspection
    "Annotation",
    "SignatureIntrospector",
    "parse_signature",
    "DEFAULT_CALLBACK_NAMES",
    "inject_names",

    # Diagnostics
    "ContextDiagnostics",
    "ContextEvent",
    "ContextEventType",
    "ConsoleDiagnosticListener",
    "DiagnosticListener",

    # Config
    "ConfigLoader",
    "ContextOptions",

    # Errors
    "ContextError",
    "SignatureParseError",
    "CallbackError",
    "ConfigError",
]
