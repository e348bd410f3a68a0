"""Pytest configuration for test isolation.

The package reads a few ``SPENDING_ANALYSIS_*`` environment variables (log
level, detector thresholds, database URL). A developer shell that happens to
export one of them would change detector output and make assertions flaky, so
an autouse fixture clears them for every test.
"""

from __future__ import annotations

import pytest

_ENV_OVERRIDES = (
    "SPENDING_ANALYSIS_LOG_LEVEL",
    "SPENDING_ANALYSIS_MIN_CONFIDENCE",
    "SPENDING_ANALYSIS_MIN_OCCURRENCES",
    "SPENDING_ANALYSIS_DATABASE_URL",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run each test without the package's environment overrides."""

    for name in _ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
