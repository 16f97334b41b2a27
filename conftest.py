"""
Root pytest configuration.
"""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest

from stagingsink.core import diagnostics
from stagingsink.core.settings import WriterSettings


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line(
        "markers",
        "critical: Tests that must never fail - core functionality",
    )
    config.addinivalue_line(
        "markers",
        "integration: Tests exercising several components together",
    )
    config.addinivalue_line(
        "markers",
        "property: Property-based tests (may be slow)",
    )


@pytest.fixture()
def capture_diagnostics() -> Generator[list[dict[str, Any]], None, None]:
    """Collect process-wide diagnostics payloads emitted during a test."""
    diagnostics._reset_for_tests()
    captured: list[dict[str, Any]] = []
    diagnostics.set_writer_for_tests(captured.append)
    yield captured
    diagnostics._reset_for_tests()


@pytest.fixture()
def writer_settings(tmp_path: Path) -> WriterSettings:
    """Writer settings that keep staging files inside the test's tmp dir."""
    return WriterSettings(temp_dir=tmp_path)
