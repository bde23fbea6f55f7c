"""Centralized path management for BusyBee data files.

This module provides a single source of truth for every file the app reads
or writes, so stores never build paths on their own.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _get_data_root() -> Path:
    """Determine the data directory: $BUSYBEE_HOME, else ~/.busybee."""
    env_home = os.environ.get("BUSYBEE_HOME", "").strip()
    if env_home:
        return Path(env_home).expanduser()
    return Path("~/.busybee").expanduser()


@dataclass
class ProjectPaths:
    """Container for all data paths.

    All paths are computed relative to the data root, ensuring consistency
    across all modules regardless of the current working directory.
    """

    root: Path = field(default_factory=_get_data_root)

    def __post_init__(self) -> None:
        self.root = Path(self.root).resolve()

    # --- Source code paths ---
    @property
    def src(self) -> Path:
        """Package directory (busybee/)."""
        return Path(__file__).resolve().parent.parent

    @property
    def default_vendor_rules(self) -> Path:
        """Bundled vendor -> category hint rules."""
        return self.src / "runtime" / "rules" / "default_vendor_rules.toml"

    # --- Configuration paths ---
    @property
    def config(self) -> Path:
        """User-edited configuration file."""
        return self.root / "config.toml"

    @property
    def settings(self) -> Path:
        """Key-value preferences written by the app."""
        return self.root / "settings.json"

    # --- Records ---
    @property
    def expenses(self) -> Path:
        """Expense ledger."""
        return self.root / "expenses.json"

    @property
    def daily_limits(self) -> Path:
        """Allowance history."""
        return self.root / "daily_limits.json"

    @property
    def achievements(self) -> Path:
        """Unlocked achievements."""
        return self.root / "achievements.json"

    @property
    def vendor_usage(self) -> Path:
        """Vendor usage counts."""
        return self.root / "vendor_usage.json"

    # --- Receipt paths ---
    @property
    def receipts(self) -> Path:
        """Receipt images, one JPEG per expense id."""
        return self.root / "receipts"

    def ensure_directories(self) -> None:
        """Create the data and receipt directories if they don't exist."""
        self.root.mkdir(parents=True, exist_ok=True)
        self.receipts.mkdir(parents=True, exist_ok=True)


# Module-level singleton
_paths: ProjectPaths | None = None


def get_paths() -> ProjectPaths:
    """Get the singleton ProjectPaths instance."""
    global _paths
    if _paths is None:
        _paths = ProjectPaths()
    return _paths


def set_data_root(root: Path | str) -> ProjectPaths:
    """Point the singleton at another data directory.

    Args:
        root: New data directory.

    Returns:
        The replaced ProjectPaths instance.
    """
    global _paths
    _paths = ProjectPaths(root=Path(root))
    return _paths


def reset_paths() -> None:
    """Clear the singleton so the next get_paths() re-reads BUSYBEE_HOME."""
    global _paths
    _paths = None
