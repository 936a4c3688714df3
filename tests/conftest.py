"""
Pytest configuration and fixtures for all tests.

This file is automatically loaded by pytest and provides common fixtures
and configuration for all test modules.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from smartcopy.core.events import EventBus
from smartcopy.persistence.storage import MemoryStore


@pytest.fixture
def store():
    """Empty in-memory key-value store."""
    return MemoryStore()


@pytest.fixture
def event_bus():
    """Event bus recording every published event."""
    bus = EventBus()
    bus.enable_history()
    return bus


@pytest.fixture
def sample_article():
    """Small HTML page with a heading, a paragraph and a list."""
    return (
        "<html><head><title>Sample</title><style>p { color: red }</style></head>"
        "<body>"
        "<h1>Smart Copy</h1>"
        "<p>The quick fox jumps. It lands <b>softly</b> on grass!</p>"
        "<ul><li>First item here.</li><li>Second item.</li></ul>"
        "</body></html>"
    )
