"""
Decorators for declaring injected parameter names explicitly.
"""

from typing import Any, Callable, TypeVar


F = TypeVar("F", bound=Callable[..., Any])


def inject_names(*names: str) -> Callable[[F], F]:
    """
    Declare the ordered parameter names a callable receives.

    Explicit names take precedence over signature introspection. Use this
    for callables whose signature is opaque (``*args`` wrappers, builtins,
    C extensions) or when the injected names differ from the declared ones.

    Args:
        *names: Parameter names in positional order

    Returns:
        Decorator function

    Example:
        @inject_names("db", "callback")
        def handler(*args):
            db, callback = args
            ...
    """
    for name in names:
        if not isinstance(name, str) or not name.isidentifier():
            raise ValueError(f"Invalid parameter name: {name!r}")

    def decorator(func: F) -> F:
        func.__inject__ = tuple(names)  # type: ignore[attr-defined]
        return func

    return decorator
