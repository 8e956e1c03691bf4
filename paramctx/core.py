"""
Core context type.

A Context is a named-parameter store combined with an invocation engine:
callables are invoked by matching their declared parameter names against
the stored parameters and call-site overrides.
"""

from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    KeysView,
    List,
    Mapping,
    Optional,
    Tuple,
    Union,
)
import asyncio
import inspect
import logging

from .adapters import settle_callback, to_future, watch_awaitable
from .diagnostics import ContextDiagnostics, ContextEventType, DiagnosticListener
from .introspection import (
    DEFAULT_CALLBACK_NAMES,
    Annotation,
    SignatureIntrospector,
    describe,
)

logger = logging.getLogger("paramctx.core")

# Name under which a context exposes itself to the callables it invokes
CONTEXT_KEY = "context"


def _normalize_callback_names(callback: Union[str, Iterable[str], None]) -> Tuple[str, ...]:
    if callback is None:
        return DEFAULT_CALLBACK_NAMES
    if isinstance(callback, str):
        return (callback,)

    names = tuple(callback)
    for name in names:
        if not isinstance(name, str):
            raise TypeError(f"Callback names must be strings, got {name!r}")
    return names


class Context:
    """
    Parameter store plus invocation engine.

    Example:
        ctx = Context()
        ctx.set("a", 1).set({"b": 2})

        ctx.call(lambda a, b: a + b)              # 3
        ctx.call(lambda a, callback: callback(None, a), print)

        result = await ctx.promise(lambda a, b: a + b)
    """

    __slots__ = (
        "parameters",
        "_introspector",
        "_diagnostics",
    )

    def __init__(
        self,
        callback: Union[str, Iterable[str], None] = None,
        parameters: Optional[Mapping[str, Any]] = None,
        *,
        diagnostics: Optional[ContextDiagnostics] = None,
    ):
        self._diagnostics = diagnostics or ContextDiagnostics()
        self._introspector = SignatureIntrospector(
            _normalize_callback_names(callback),
            diagnostics=self._diagnostics,
        )
        self.parameters: Dict[str, Any] = dict(parameters or {})

    @classmethod
    def from_config(cls, config: Any, **kwargs) -> "Context":
        """
        Build a context from a ``ConfigLoader`` or ``ContextOptions``.

        Args:
            config: Loaded configuration
            **kwargs: Extra constructor arguments (e.g. diagnostics)
        """
        from .config import ConfigLoader

        options = config.get_context_options() if isinstance(config, ConfigLoader) else config
        return cls(callback=options.callback, parameters=options.parameters, **kwargs)

    # ── Properties ───────────────────────────────────────────────────

    @property
    def callback(self) -> Tuple[str, ...]:
        """Parameter names that receive the injected callback."""
        return self._introspector.callback_names

    @property
    def introspector(self) -> SignatureIntrospector:
        return self._introspector

    @property
    def diagnostics(self) -> ContextDiagnostics:
        return self._diagnostics

    def add_listener(self, listener: DiagnosticListener) -> "Context":
        """Subscribe a listener to this context's events."""
        self._diagnostics.add_listener(listener)
        return self

    def remove_listener(self, listener: DiagnosticListener) -> "Context":
        self._diagnostics.remove_listener(listener)
        return self

    # ── Parameter store ──────────────────────────────────────────────

    def set(self, key: Union[str, Mapping[str, Any]], value: Any = None) -> "Context":
        """
        Set one parameter, or merge a mapping of parameters.

        The merge is shallow: nested values are replaced, never merged.

        Returns:
            The context itself, for chaining
        """
        if isinstance(key, Mapping):
            updates = dict(key)
        else:
            updates = {key: value}

        self.parameters.update(updates)
        self._diagnostics.emit(ContextEventType.PARAMETER_SET, keys=tuple(updates))
        return self

    def get(self, key: str, default: Any = None) -> Any:
        """Stored value for ``key``; ``default`` only when the key is absent."""
        if key in self.parameters:
            return self.parameters[key]
        return default

    def remove(self, key: str) -> "Context":
        """Delete ``key`` if present. Returns the context for chaining."""
        if key in self.parameters:
            del self.parameters[key]
            self._diagnostics.emit(ContextEventType.PARAMETER_REMOVED, keys=(key,))
        return self

    def keys(self) -> KeysView[str]:
        return self.parameters.keys()

    def __contains__(self, key: object) -> bool:
        return key in self.parameters

    def __len__(self) -> int:
        return len(self.parameters)

    def __repr__(self) -> str:
        return f"<Context parameters={sorted(self.parameters)} callback={list(self.callback)}>"

    def child(self) -> "Context":
        """
        Create a child context.

        The child starts with a shallow copy of the parameters: top-level
        keys are independent, nested mutable values are still shared.
        Callback names, the annotation cache and diagnostics are shared.
        """
        child = type(self).__new__(type(self))
        child.parameters = dict(self.parameters)
        child._introspector = self._introspector
        child._diagnostics = self._diagnostics

        self._diagnostics.emit(ContextEventType.CHILD_CREATED, keys=tuple(child.parameters))
        return child

    # ── Introspection ────────────────────────────────────────────────

    def annotate(self, fn: Callable) -> List[str]:
        """
        Ordered parameter names ``fn`` declares.

        Raises:
            SignatureParseError: If no signature can be derived
        """
        return self._introspector.annotate(fn)

    def annotation(self, fn: Callable) -> Annotation:
        """Cached annotation (names and callback slot) for ``fn``."""
        return self._introspector.annotation(fn)

    # ── Invocation ───────────────────────────────────────────────────

    def invoke(self, fn: Callable, parameters: Optional[Mapping[str, Any]] = None) -> Any:
        """
        Call ``fn`` with arguments looked up by parameter name.

        Missing names receive the declared default, or None. The reserved
        ``context`` name resolves to this context unless ``parameters``
        provides a value other than None. Exceptions raised by ``fn`` propagate unchanged.
        """
        source = parameters if parameters is not None else {}
        annotation = self._introspector.annotation(fn)

        args: List[Any] = []
        kwargs: Dict[str, Any] = {}
        for name in annotation.names:
            if name == CONTEXT_KEY and source.get(name) is None:
                value = self
            elif name in source:
                value = source[name]
            else:
                value = annotation.defaults.get(name)

            if name in annotation.keyword_only:
                kwargs[name] = value
            else:
                args.append(value)

        with self._diagnostics.measure(describe(fn), keys=annotation.names):
            return fn(*args, **kwargs)

    def call(
        self,
        fn: Callable,
        parameters: Union[Mapping[str, Any], Callable, None] = None,
        callback: Optional[Callable] = None,
    ) -> Any:
        """
        Invoke ``fn`` with context parameters, call-site overrides and a callback.

        Accepts ``call(fn, parameters, callback)`` and ``call(fn, callback)``.
        Call-site parameters win over stored ones. Every configured callback
        name is then set to ``callback``, so a call without one passes None
        there rather than any stored value. Stored parameters are never
        modified.
        """
        if callable(parameters) and not isinstance(parameters, Mapping):
            callback, parameters = parameters, None

        values = dict(self.parameters)
        if parameters:
            values.update(parameters)

        for name in self.callback:
            values[name] = callback

        return self.invoke(fn, values)

    def async_(
        self,
        fn: Callable,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> Callable[..., Any]:
        """
        Prepare a call without running it.

        Returns:
            ``thunk(callback=None)`` that performs ``call(fn, parameters, callback)``
        """
        def thunk(callback: Optional[Callable] = None) -> Any:
            return self.call(fn, parameters, callback)

        thunk.__name__ = f"async_{getattr(fn, '__name__', 'call')}"
        thunk.__qualname__ = thunk.__name__
        return thunk

    def promise(
        self,
        fn: Callable,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> "asyncio.Future[Any]":
        """
        Invoke ``fn`` and expose its outcome as a future.

        - With a callback slot, the injected ``(error, result)`` callback
          settles the future.
        - Without one, a returned future/awaitable is passed through, a
          returned exception instance rejects and any other value resolves.

        Exceptions raised by ``fn`` reject the future. Must be called from a
        running event loop.

        Raises:
            SignatureParseError: If no signature can be derived
            RuntimeError: If no event loop is running
        """
        loop = asyncio.get_running_loop()
        annotation = self._introspector.annotation(fn)

        if annotation.has_callback:
            future = loop.create_future()
            try:
                returned = self.call(fn, parameters, settle_callback(future))
            except Exception as e:
                if future.done():
                    logger.error(f"{describe(fn)} raised after settling its callback: {e!r}")
                else:
                    future.set_exception(e)
                return future

            if inspect.isawaitable(returned):
                watch_awaitable(returned, future)
            return future

        try:
            result = self.call(fn, parameters)
        except Exception as e:
            result = e
        return to_future(result, loop)
