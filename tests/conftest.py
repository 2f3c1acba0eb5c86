"""Pytest configuration for test isolation.

The CLI and the import pipeline read configuration from the environment
(``DATABASE_URL``, ``MR_AMAZON_PREAMBLE_LINES``, ``MARKETPLACE_RECON_LOG_LEVEL``)
and ``db.client`` keeps one engine per process. Tests must not see a
developer's ``.env`` or an engine bound by an earlier test, so an autouse
fixture clears both around every test.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from db.client import dispose_engine

_ENV_VARS = (
    "DATABASE_URL",
    "MR_AMAZON_PREAMBLE_LINES",
    "MARKETPLACE_RECON_LOG_LEVEL",
    "MARKETPLACE_RECON_LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Run each test from an empty directory with a clean environment."""

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # The CLI loads ``.env`` from the working directory.
    monkeypatch.chdir(tmp_path)
    dispose_engine()
    yield
    dispose_engine()
