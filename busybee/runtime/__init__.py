"""Runtime infrastructure for BusyBee.

This package provides process/runtime services including:
- Logging setup via get_logger()
- Path resolution via get_paths(), ProjectPaths
- Configuration and preferences via load_config(), AppSettings
- JSON stores, the receipt image store, and notification collaborators

Usage:
    from busybee.runtime import get_logger, get_paths

    logger = get_logger(__name__)
    paths = get_paths()
    print(paths.root, paths.expenses)
"""

from busybee.runtime.logging import (
    DEFAULT_LOG_LEVEL,
    LOG_FORMAT,
    LOG_FORMAT_DEBUG,
    configure_logging,
    get_logger,
    set_log_level,
)
from busybee.runtime.notifications import (
    DeficitNotifier,
    LoggingDeficitNotifier,
    LoggingReminderScheduler,
    ReminderScheduler,
)
from busybee.runtime.paths import ProjectPaths, get_paths, reset_paths, set_data_root
from busybee.runtime.receipt_store import ReceiptFileStore, compress_receipt_image
from busybee.runtime.settings import AppSettings, BudgetConfig, load_config
from busybee.runtime.storage import (
    AchievementStore,
    AllowanceStore,
    ExpenseStore,
    KeyValueStore,
    VendorUsageStore,
)
from busybee.runtime.vendor_rules import load_vendor_rules

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "set_log_level",
    "DEFAULT_LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_FORMAT_DEBUG",
    # Paths
    "get_paths",
    "set_data_root",
    "reset_paths",
    "ProjectPaths",
    # Config
    "AppSettings",
    "BudgetConfig",
    "load_config",
    "load_vendor_rules",
    # Storage
    "AchievementStore",
    "AllowanceStore",
    "ExpenseStore",
    "KeyValueStore",
    "VendorUsageStore",
    "ReceiptFileStore",
    "compress_receipt_image",
    # Notifications
    "DeficitNotifier",
    "ReminderScheduler",
    "LoggingDeficitNotifier",
    "LoggingReminderScheduler",
]
