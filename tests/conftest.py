"""Shared pytest fixtures for BusyBee tests."""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterator
from pathlib import Path

import pytest

from busybee.runtime import paths as paths_module
from busybee.runtime.settings import load_config
from busybee.runtime.vendor_rules import load_vendor_rules


@pytest.fixture(autouse=True)
def isolated_data_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Point every test at its own data directory and drop cached config."""
    root = tmp_path / "busybee-home"
    monkeypatch.setenv("BUSYBEE_HOME", str(root))
    paths_module.reset_paths()
    load_config.cache_clear()
    load_vendor_rules.cache_clear()
    yield root
    paths_module.reset_paths()
    load_config.cache_clear()
    load_vendor_rules.cache_clear()


class FixedClock:
    """Callable clock tests can move forward."""

    def __init__(self, now: dt.datetime) -> None:
        self.now = now

    def __call__(self) -> dt.datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += dt.timedelta(**kwargs)


@pytest.fixture
def clock() -> FixedClock:
    # Wednesday
    return FixedClock(dt.datetime(2024, 1, 17, 9, 30))
