"""Pytest configuration and fixtures."""

import pytest
import tempfile
from pathlib import Path


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def sample_document():
    """Sample nested JSON-compatible document for testing."""
    return {
        "users": [
            {"id": 1, "name": "Alice", "email": "alice@example.com", "password": "secret1"},
            {"id": 2, "name": "Bob", "email": "bob@example.com", "password": "secret2"},
        ],
        "settings": {
            "theme": "dark",
            "notifications": True,
            "limits": {"timeout": 30, "retries": 3, "ratio": 0.75},
        },
        "tags": ["a", "b", None],
        "empty_object": {},
        "empty_list": [],
        "unicode": "Hello 世界",
    }


@pytest.fixture
def recorder():
    """Transform that records every (key, value) it sees and keeps the value."""
    calls = []

    async def transform(context, key, value):
        calls.append((key, value))
        return value

    transform.calls = calls
    return transform
