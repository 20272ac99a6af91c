"""Top-level pytest configuration for gcl_output tests."""

from __future__ import annotations

import sys
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[1]

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


def pytest_configure(config):  # pragma: no cover - configuration hook
    config.addinivalue_line("markers", "gcl_output: Cloud Logging output unit tests")
