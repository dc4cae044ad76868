# tests/conftest.py
"""Shared test fixtures and helpers.

Remote zones are simulated with the local directory transport rooted in
tmp_path, so storages and targets run their real code paths without a
server.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/
"""

import os
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
import structlog
from hypothesis import Phase, Verbosity, settings

from zonestore.core.config import ZoneSettings
from zonestore.transport.local import LocalTransport
from zonestore.transport.pool import TransportPool

# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Load profile from environment, default to "ci"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Undo logging configuration done by a test (the CLI configures it)."""
    yield
    structlog.reset_defaults()


# =============================================================================
# Zone fixtures
# =============================================================================

@pytest.fixture
def remote_root(tmp_path: Path) -> Path:
    """Directory standing in for the server root."""
    root = tmp_path / "remote"
    root.mkdir()
    return root


@pytest.fixture
def make_zone(remote_root: Path) -> Callable[..., ZoneSettings]:
    """Factory for local-transport zone settings."""

    def _make(zone: str, **overrides: Any) -> ZoneSettings:
        values: dict[str, Any] = {
            "host": "localhost",
            "user": "deploy",
            "pass": "secret",
            "zone": zone,
            "zoneDomain": f"{zone}-1a2b.kxcdn.com",
            "transport": "local",
            "local_root": remote_root,
        }
        values.update(overrides)
        return ZoneSettings(**values)

    return _make


@pytest.fixture
def make_pool() -> Iterator[Callable[..., TransportPool]]:
    """Factory for pools of local transports, closed after the test."""
    pools: list[TransportPool] = []

    def _make(zone: ZoneSettings, size: int = 2) -> TransportPool:
        pool = TransportPool(lambda: LocalTransport(zone), size=size)
        pools.append(pool)
        return pool

    yield _make
    for pool in pools:
        pool.close()
