"""
Pytest configuration and fixtures for permissions_policy tests.

This module provides shared fixtures used across unit, integration,
and security tests.
"""

import tempfile
from pathlib import Path
from typing import Generator

import pytest


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_config_yaml() -> str:
    """Return a top-level policy scenario."""
    return """
origin: https://sidvishnoi.com
header: "fullscreen=(self), geolocation=()"
default_allowlist:
  fullscreen: "'self'"
  geolocation: "*"
  camera: "'none'"
"""


@pytest.fixture
def frame_config_yaml() -> str:
    """Return a scenario evaluated inside a cross-origin iframe."""
    return """
origin: https://sidvishnoi.com
header: 'fullscreen=(self "https://example.com")'
default_allowlist:
  fullscreen: "'self'"
frame:
  origin: https://example.com
  allow: "fullscreen"
"""
