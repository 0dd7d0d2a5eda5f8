"""Mock utilities for testing."""

from .process_mocks import MockCall, MockProcessExecutor, MockResponse

__all__ = [
    "MockCall",
    "MockProcessExecutor",
    "MockResponse",
]
