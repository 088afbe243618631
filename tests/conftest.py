"""Pytest configuration and shared fixtures."""

import os

import pytest
from hypothesis import settings

if "STORM_ENV" not in os.environ:
    os.environ["STORM_ENV"] = "test"

# Create a profile named "no_deadline" with deadline disabled.
settings.register_profile("no_deadline", deadline=None)
settings.load_profile("no_deadline")


@pytest.fixture
def anyio_backend() -> str:
    """Run anyio tests on asyncio; the in-memory session helpers use asyncio queues."""
    return "asyncio"
