"""Root pytest configuration for all tests."""

from __future__ import annotations

import pytest

from nodecanvas.config import reset_config
from nodecanvas.graph.model import Graph

# Configure pytest-asyncio to use auto mode
# This is redundant with pyproject.toml but ensures it's set
pytest_plugins = ("pytest_asyncio",)


@pytest.fixture(autouse=True)
def _fresh_config():
    """Keep the cached config from leaking between tests."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def graph() -> Graph:
    return Graph()
