"""
Testing utilities for contexts.
"""

from typing import Any, List, Tuple

from .core import Context
from .diagnostics import ContextEvent, ContextEventType


class RecordingCallback:
    """
    ``(error, result)`` callback that records every call.

    Useful to assert on callback-style invocations without an event loop.
    """

    def __init__(self):
        self.calls: List[Tuple[Any, Any]] = []

    def __call__(self, error: Any = None, result: Any = None) -> None:
        self.calls.append((error, result))

    @property
    def called(self) -> bool:
        return bool(self.calls)

    @property
    def call_count(self) -> int:
        return len(self.calls)

    @property
    def error(self) -> Any:
        """Error of the last call."""
        return self.calls[-1][0] if self.calls else None

    @property
    def result(self) -> Any:
        """Result of the last call."""
        return self.calls[-1][1] if self.calls else None

    def reset(self) -> None:
        self.calls.clear()


class RecordingListener:
    """Diagnostic listener that keeps every event for assertions."""

    def __init__(self):
        self.events: List[ContextEvent] = []

    def on_event(self, event: ContextEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: ContextEventType) -> List[ContextEvent]:
        return [event for event in self.events if event.type == event_type]

    def reset(self) -> None:
        self.events.clear()


# Pytest fixtures (if pytest is available)
try:
    import pytest

    @pytest.fixture
    def context():
        """Provide a clean context for tests."""
        return Context()

    @pytest.fixture
    def recording_callback():
        """Provide a fresh recording callback."""
        return RecordingCallback()

    @pytest.fixture
    def recording_listener(context):
        """Listener attached to the ``context`` fixture."""
        listener = RecordingListener()
        context.add_listener(listener)
        return listener

except ImportError:
    # pytest not available - skip fixtures
    pass
