"""
Shared test fixtures for the paramctx test suite.
"""

# Import fixtures so pytest can discover them
from paramctx.testing import (  # noqa: F401
    context,
    recording_callback,
    recording_listener,
)
