"""Achievement types and the thresholds that unlock them."""

from __future__ import annotations

import datetime as dt
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from busybee.domain.metrics import SummaryMetrics

WEEK_WINNER_WINDOW = 7
WEEK_WINNER_MIN_DAYS = 5


class AchievementType(str, Enum):
    FIVE_DAY_STREAK = "fiveDayStreak"
    SEVEN_DAY_STREAK = "sevenDayStreak"
    PIGGY_50 = "piggy50"
    PIGGY_100 = "piggy100"
    WEEK_WINNER = "weekWinner"

    @property
    def title(self) -> str:
        return _TITLES[self]

    @property
    def emoji(self) -> str:
        return _EMOJI[self]


_TITLES = {
    AchievementType.FIVE_DAY_STREAK: "5-Day Streak",
    AchievementType.SEVEN_DAY_STREAK: "7-Day Streak",
    AchievementType.PIGGY_50: "$50 Saved",
    AchievementType.PIGGY_100: "$100 Saved",
    AchievementType.WEEK_WINNER: "Week Winner",
}

_EMOJI = {
    AchievementType.FIVE_DAY_STREAK: "🔥",
    AchievementType.SEVEN_DAY_STREAK: "⚡️",
    AchievementType.PIGGY_50: "🐷",
    AchievementType.PIGGY_100: "🏆",
    AchievementType.WEEK_WINNER: "🥇",
}


@dataclass(frozen=True)
class Achievement:
    type: AchievementType
    awarded_date: dt.datetime = field(default_factory=dt.datetime.now)
    id: uuid.UUID = field(default_factory=uuid.uuid4)


def qualifying_types(metrics: SummaryMetrics) -> list[AchievementType]:
    """Every achievement type the metrics currently satisfy, in display order."""
    qualified: list[AchievementType] = []
    if metrics.current_positive_streak >= 5:
        qualified.append(AchievementType.FIVE_DAY_STREAK)
    if metrics.current_positive_streak >= 7:
        qualified.append(AchievementType.SEVEN_DAY_STREAK)
    if metrics.piggy_bank_total >= Decimal(50):
        qualified.append(AchievementType.PIGGY_50)
    if metrics.piggy_bank_total >= Decimal(100):
        qualified.append(AchievementType.PIGGY_100)
    if metrics.positive_days_in_last(WEEK_WINNER_WINDOW) >= WEEK_WINNER_MIN_DAYS:
        qualified.append(AchievementType.WEEK_WINNER)
    return qualified


def evaluate_achievements(
    metrics: SummaryMetrics,
    unlocked: Iterable[Achievement],
    awarded_at: dt.datetime | None = None,
) -> list[Achievement]:
    """Achievements newly earned; types already unlocked are never awarded twice."""
    already = {a.type for a in unlocked}
    when = awarded_at if awarded_at is not None else dt.datetime.now()
    return [Achievement(type=t, awarded_date=when) for t in qualifying_types(metrics) if t not in already]
