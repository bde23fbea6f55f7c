"""User preferences and the optional config.toml.

Preferences (active period, reminder toggles, preset amounts, category
names) are changed from inside the app and live in the key-value store.
``config.toml`` is edited by hand and only read.

Example config.toml:

    [budget]
    default_daily_allowance = "25"
    week_start = "sunday"

    [vendors]
    rules_path = "~/my_vendor_rules.toml"
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any

from busybee.domain.allowance import DEFAULT_DAILY_ALLOWANCE
from busybee.domain.errors import InvalidAmount
from busybee.domain.ledger import ExpenseCategory
from busybee.domain.money import coerce_amount
from busybee.domain.periods import BudgetPeriod
from busybee.runtime.logging import get_logger
from busybee.runtime.paths import get_paths
from busybee.runtime.storage import KeyValueStore

logger = get_logger(__name__)

DEFAULT_PRESET_AMOUNTS = (Decimal(5), Decimal(10), Decimal(15), Decimal(25), Decimal(50))

_WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class Keys:
    BUDGET_PERIOD = "budgetPeriod"
    MORNING_REMINDERS = "morningReminders"
    END_OF_DAY_SUMMARY = "endOfDaySummary"
    RECEIPT_STORAGE_ENABLED = "receiptStorageEnabled"
    PRESET_AMOUNTS = "presetAmounts"
    CATEGORY_DISPLAY_NAMES = "categoryDisplayNames"
    TRACKING_START_DATE = "trackingStartDate"


@dataclass(frozen=True)
class BudgetConfig:
    default_daily_allowance: Decimal = DEFAULT_DAILY_ALLOWANCE
    week_start: int = 0  # Monday
    vendor_rules_path: Path | None = None


def _parse_week_start(raw: Any) -> int:
    if isinstance(raw, int) and 0 <= raw <= 6:
        return raw
    if isinstance(raw, str) and raw.strip().lower() in _WEEKDAYS:
        return _WEEKDAYS.index(raw.strip().lower())
    raise ValueError(f"Invalid week_start: {raw!r}")


@lru_cache(maxsize=4)
def load_config(config_path: str | None = None) -> BudgetConfig:
    """
    Load config.toml.

    Args:
        config_path: Optional TOML path override. If None, uses the data directory.

    Returns:
        BudgetConfig with defaults for anything not set.
    """
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore[no-redef]

    path = Path(config_path) if config_path is not None else get_paths().config
    if not path.exists():
        return BudgetConfig()

    with open(path, "rb") as f:
        config = tomllib.load(f)

    budget = config.get("budget", {})
    vendors = config.get("vendors", {})

    default_allowance = DEFAULT_DAILY_ALLOWANCE
    if "default_daily_allowance" in budget:
        default_allowance = coerce_amount(budget["default_daily_allowance"])
        if default_allowance < 0:
            raise InvalidAmount(f"default_daily_allowance must not be negative in {path}")

    week_start = _parse_week_start(budget["week_start"]) if "week_start" in budget else 0

    rules_path = None
    if vendors.get("rules_path"):
        rules_path = Path(str(vendors["rules_path"])).expanduser()

    logger.debug("Loaded config from %s", path)
    return BudgetConfig(
        default_daily_allowance=default_allowance,
        week_start=week_start,
        vendor_rules_path=rules_path,
    )


@dataclass
class AppSettings:
    budget_period: BudgetPeriod = BudgetPeriod.DAILY
    morning_reminders: bool = True
    end_of_day_summary: bool = True
    receipt_storage_enabled: bool = False
    preset_amounts: list[Decimal] = field(default_factory=lambda: list(DEFAULT_PRESET_AMOUNTS))
    category_display_names: dict[ExpenseCategory, str] = field(default_factory=dict)
    tracking_start: dt.date | None = None

    @classmethod
    def load(cls, store: KeyValueStore) -> AppSettings:
        """Read preferences, falling back to defaults for missing or bad values."""
        settings = cls()

        try:
            settings.budget_period = BudgetPeriod(store.get(Keys.BUDGET_PERIOD, BudgetPeriod.DAILY.value))
        except (TypeError, ValueError):
            logger.warning("Unknown budget period in settings, using Daily")

        for key, attr in (
            (Keys.MORNING_REMINDERS, "morning_reminders"),
            (Keys.END_OF_DAY_SUMMARY, "end_of_day_summary"),
            (Keys.RECEIPT_STORAGE_ENABLED, "receipt_storage_enabled"),
        ):
            value = store.get(key)
            if isinstance(value, bool):
                setattr(settings, attr, value)

        raw_presets = store.get(Keys.PRESET_AMOUNTS) or []
        if not isinstance(raw_presets, list):
            logger.warning("Ignoring preset amounts that are not a list: %r", raw_presets)
            raw_presets = []
        presets: list[Decimal] = []
        for raw in raw_presets:
            try:
                presets.append(coerce_amount(str(raw)))
            except InvalidAmount:
                continue
        if presets:
            settings.preset_amounts = presets

        names = store.get(Keys.CATEGORY_DISPLAY_NAMES) or {}
        if not isinstance(names, dict):
            logger.warning("Ignoring category names that are not a mapping: %r", names)
            names = {}
        for raw_category, name in names.items():
            try:
                settings.category_display_names[ExpenseCategory(raw_category)] = str(name)
            except ValueError:
                continue

        raw_start = store.get(Keys.TRACKING_START_DATE)
        if raw_start:
            try:
                settings.tracking_start = dt.date.fromisoformat(raw_start)
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid tracking start date: %r", raw_start)

        return settings

    def to_values(self) -> dict[str, Any]:
        return {
            Keys.BUDGET_PERIOD: self.budget_period.value,
            Keys.MORNING_REMINDERS: self.morning_reminders,
            Keys.END_OF_DAY_SUMMARY: self.end_of_day_summary,
            Keys.RECEIPT_STORAGE_ENABLED: self.receipt_storage_enabled,
            Keys.PRESET_AMOUNTS: [str(a) for a in self.preset_amounts],
            Keys.CATEGORY_DISPLAY_NAMES: {c.value: n for c, n in self.category_display_names.items()},
            Keys.TRACKING_START_DATE: self.tracking_start.isoformat() if self.tracking_start else None,
        }

    def save(self, store: KeyValueStore) -> None:
        store.update(self.to_values())

    def display_name(self, category: ExpenseCategory) -> str:
        return self.category_display_names.get(category, category.default_title)

    def set_category_names(self, names: dict[ExpenseCategory, str]) -> None:
        """Replace the renames; blank names and names equal to the default are dropped."""
        overrides: dict[ExpenseCategory, str] = {}
        for category in ExpenseCategory:
            resolved = (names.get(category) or category.default_title).strip() or category.default_title
            if resolved != category.default_title:
                overrides[category] = resolved
        self.category_display_names = overrides

    def reset_category_names(self) -> None:
        self.category_display_names = {}
