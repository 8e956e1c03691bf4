"""
Context Diagnostics - Observability and event tracking for contexts.
"""

import time
from typing import Any, Dict, List, Optional, Tuple, Protocol
from enum import Enum
import dataclasses
import logging

logger = logging.getLogger("paramctx.diagnostics")


class ContextEventType(Enum):
    """Types of context events."""
    PARAMETER_SET = "parameter_set"
    PARAMETER_REMOVED = "parameter_removed"
    CHILD_CREATED = "child_created"
    ANNOTATION = "annotation"
    INVOCATION_START = "invocation_start"
    INVOCATION_SUCCESS = "invocation_success"
    INVOCATION_FAILURE = "invocation_failure"


@dataclasses.dataclass
class ContextEvent:
    """A diagnostic event emitted by a context."""
    type: ContextEventType
    timestamp: float = dataclasses.field(default_factory=time.time)
    target: Optional[str] = None
    keys: Tuple[str, ...] = ()
    duration: Optional[float] = None
    error: Optional[BaseException] = None
    metadata: Dict[str, Any] = dataclasses.field(default_factory=dict)


class DiagnosticListener(Protocol):
    """Interface for context diagnostic listeners."""
    def on_event(self, event: ContextEvent) -> None:
        """Called when a context event occurs."""
        ...


class ConsoleDiagnosticListener:
    """Diagnostic listener that writes events to the logging system."""
    def __init__(self, log_level: int = logging.DEBUG):
        self.log_level = log_level

    def on_event(self, event: ContextEvent) -> None:
        if event.type == ContextEventType.PARAMETER_SET:
            logger.log(self.log_level, f"Set parameters {list(event.keys)}")
        elif event.type == ContextEventType.PARAMETER_REMOVED:
            logger.log(self.log_level, f"Removed parameter {list(event.keys)}")
        elif event.type == ContextEventType.CHILD_CREATED:
            logger.log(self.log_level, f"Created child context with {len(event.keys)} parameters")
        elif event.type == ContextEventType.ANNOTATION:
            logger.log(self.log_level, f"Annotated {event.target}: {list(event.keys)}")
        elif event.type == ContextEventType.INVOCATION_START:
            logger.log(self.log_level, f"Invoking {event.target} with {list(event.keys)}...")
        elif event.type == ContextEventType.INVOCATION_SUCCESS:
            logger.log(self.log_level, f"Invoked {event.target} in {event.duration:.4f}s")
        elif event.type == ContextEventType.INVOCATION_FAILURE:
            logger.log(logging.ERROR, f"Invocation of {event.target} failed: {event.error!r}")


class ContextDiagnostics:
    """Coordinator for context diagnostic listeners."""
    def __init__(self):
        self._listeners: List[DiagnosticListener] = []

    @property
    def listeners(self) -> List[DiagnosticListener]:
        return list(self._listeners)

    def add_listener(self, listener: DiagnosticListener) -> None:
        """Add a diagnostic listener."""
        self._listeners.append(listener)

    def remove_listener(self, listener: DiagnosticListener) -> None:
        """Remove a previously added listener. Unknown listeners are ignored."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, event_type: ContextEventType, **kwargs) -> None:
        """Emit a diagnostic event to all listeners."""
        if not self._listeners:
            return

        event = ContextEvent(type=event_type, **kwargs)
        for listener in self._listeners:
            try:
                listener.on_event(event)
            except Exception as e:
                # Listeners must not break invocation
                logger.error(f"Diagnostic listener error: {e}")

    def measure(self, target: str, **kwargs):
        """Context manager that reports success or failure of an invocation."""
        return _DiagnosticMeasure(self, target, **kwargs)


class _DiagnosticMeasure:
    def __init__(self, diagnostics: ContextDiagnostics, target: str, **kwargs):
        self.diagnostics = diagnostics
        self.target = target
        self.kwargs = kwargs
        self.start_time = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.diagnostics.emit(
            ContextEventType.INVOCATION_START,
            target=self.target,
            **self.kwargs
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.perf_counter() - self.start_time
        if exc_type:
            self.diagnostics.emit(
                ContextEventType.INVOCATION_FAILURE,
                target=self.target,
                duration=duration,
                error=exc_val,
                **self.kwargs
            )
        else:
            self.diagnostics.emit(
                ContextEventType.INVOCATION_SUCCESS,
                target=self.target,
                duration=duration,
                **self.kwargs
            )
        return False
