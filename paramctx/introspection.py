"""
Signature introspection.

Derives the ordered parameter names a callable expects and which of them,
if any, is the callback slot. Results are memoized per introspector in a
weak side mapping, so callables are never mutated and cached entries go
away with the callable.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple
import inspect
import logging
import weakref

from .diagnostics import ContextDiagnostics, ContextEventType
from .errors import SignatureParseError

logger = logging.getLogger("paramctx.introspection")

DEFAULT_CALLBACK_NAMES: Tuple[str, ...] = ("callback",)

_EMPTY = inspect.Parameter.empty

# *args and **kwargs never receive injected values
_INJECTABLE_KINDS = frozenset((
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
    inspect.Parameter.KEYWORD_ONLY,
))


@dataclass(frozen=True, slots=True)
class Annotation:
    """
    Derived facts about a callable.

    Attributes:
        names:        Injected parameter names in declaration order.
        callback:     Name of the callback slot, ``""`` when there is none.
        keyword_only: Names that must be passed by keyword.
        defaults:     Declared default values, used for missing parameters.
    """

    names: Tuple[str, ...] = ()
    callback: str = ""
    keyword_only: FrozenSet[str] = frozenset()
    defaults: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def has_callback(self) -> bool:
        return bool(self.callback)


def describe(fn: Any) -> str:
    """Readable name for a callable, used in logs and diagnostics."""
    module = getattr(fn, "__module__", None) or ""
    qualname = getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None)
    if qualname is None:
        return repr(fn)
    return f"{module}.{qualname}" if module else qualname


def parse_signature(fn: Any) -> Tuple[Tuple[str, ...], FrozenSet[str], Dict[str, Any]]:
    """
    Parse the injectable parameters of a callable.

    Explicit ``__inject__`` metadata (see ``inject_names``) wins over
    ``inspect.signature``.

    Returns:
        Tuple of (names, keyword_only, defaults)

    Raises:
        SignatureParseError: If ``fn`` is not callable or has no signature
    """
    explicit = getattr(fn, "__inject__", None)
    if explicit is not None:
        return tuple(explicit), frozenset(), {}

    if not callable(fn):
        raise SignatureParseError(fn, "object is not callable")

    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError) as e:
        raise SignatureParseError(fn, str(e)) from e

    names: List[str] = []
    keyword_only = set()
    defaults: Dict[str, Any] = {}

    for name, param in sig.parameters.items():
        if param.kind not in _INJECTABLE_KINDS:
            continue

        names.append(name)
        if param.kind is inspect.Parameter.KEYWORD_ONLY:
            keyword_only.add(name)
        if param.default is not _EMPTY:
            defaults[name] = param.default

    return tuple(names), frozenset(keyword_only), defaults


class SignatureIntrospector:
    """
    Memoizing front-end for ``parse_signature``.

    The callback slot of a callable is the first declared name found in
    ``callback_names``.
    """

    __slots__ = ("_callback_names", "_cache", "_diagnostics")

    def __init__(
        self,
        callback_names: Iterable[str] = DEFAULT_CALLBACK_NAMES,
        diagnostics: Optional[ContextDiagnostics] = None,
    ):
        self._callback_names: Tuple[str, ...] = tuple(callback_names)
        self._cache: "weakref.WeakKeyDictionary[Callable, Annotation]" = weakref.WeakKeyDictionary()
        self._diagnostics = diagnostics or ContextDiagnostics()

    @property
    def callback_names(self) -> Tuple[str, ...]:
        return self._callback_names

    def annotation(self, fn: Callable) -> Annotation:
        """Get the (cached) annotation for ``fn``."""
        cached = self._lookup(fn)
        if cached is not None:
            return cached

        names, keyword_only, defaults = parse_signature(fn)
        callback = next((name for name in names if name in self._callback_names), "")
        annotation = Annotation(
            names=names,
            callback=callback,
            keyword_only=keyword_only,
            defaults=defaults,
        )
        self._store(fn, annotation)

        logger.debug(f"Annotated {describe(fn)}: names={list(names)} callback={callback!r}")
        self._diagnostics.emit(
            ContextEventType.ANNOTATION,
            target=describe(fn),
            keys=names,
            metadata={"callback": callback},
        )
        return annotation

    def annotate(self, fn: Callable) -> List[str]:
        """Ordered parameter names ``fn`` declares."""
        return list(self.annotation(fn).names)

    def is_cached(self, fn: Callable) -> bool:
        return self._lookup(fn) is not None

    def clear(self) -> None:
        """Drop every cached annotation."""
        self._cache.clear()

    def _lookup(self, fn: Callable) -> Optional[Annotation]:
        try:
            return self._cache.get(fn)
        except TypeError:
            # Not weakly referenceable or not hashable: never cached
            return None

    def _store(self, fn: Callable, annotation: Annotation) -> None:
        try:
            self._cache[fn] = annotation
        except TypeError:
            pass
