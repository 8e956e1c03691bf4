"""
Context-specific error types with descriptive messages.
"""

from typing import Any, Optional


class ContextError(Exception):
    """Base exception for paramctx errors."""
    pass


class SignatureParseError(ContextError):
    """Parameter names could not be derived from a callable."""

    def __init__(self, target: Any, reason: Optional[str] = None):
        self.target = target
        self.reason = reason

        msg = f"Cannot derive parameter names from {target!r}"
        if reason:
            msg += f": {reason}"

        msg += "\n\nSuggested fixes:"
        msg += "\n  - Pass a plain function, method, class or functools.partial"
        msg += "\n  - Declare names explicitly with @inject_names(...)"

        super().__init__(msg)


class CallbackError(ContextError):
    """
    A callback reported a failure that is not an exception instance.

    The original value is kept on ``error`` so consumers can inspect it.
    """

    def __init__(self, error: Any):
        self.error = error
        super().__init__(f"Callback reported failure: {error!r}")


class ConfigError(ContextError):
    """Raised when context configuration validation fails."""
    pass
