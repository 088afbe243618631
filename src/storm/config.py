"""
Global configuration for the storm core library.

This module contains environment-specific settings that apply across all modules.
"""

import os
from typing import Final

_SUPPORTED_STORM_ENVS: list[str] = ["prod", "test"]

STORM_ENV = os.environ.get("STORM_ENV", "prod").lower()
"""The environment flag ('prod' or 'test'). Defaults to 'prod'."""

if STORM_ENV not in _SUPPORTED_STORM_ENVS:
    raise ValueError(
        f"Invalid STORM_ENV environment variable: '{STORM_ENV}'. "
        f"Supported values: {_SUPPORTED_STORM_ENVS}"
    )

DEFAULT_CHUNK_SIZE: Final[int] = 2**20 if STORM_ENV == "prod" else 2**10
"""Chunk size used when splitting a payload without an explicit size."""
