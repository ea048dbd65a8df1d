from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import FrozenSet, Iterable, Optional, Union

from .pricing_rules import get_pricing_rules

DateLike = Union[date, datetime]


@dataclass(frozen=True)
class FactoryCalendar:
    """Working days of the factory: weekdays minus public holidays, plus make-up weekends."""

    holidays: FrozenSet[date]
    working_weekends: FrozenSet[date]
    cutoff_hour: int = 20

    @classmethod
    def from_rules(cls, rules: Optional[dict] = None) -> "FactoryCalendar":
        cfg = (rules or get_pricing_rules())["calendar"]
        return cls(
            holidays=_dates(cfg.get("holidays", [])),
            working_weekends=_dates(cfg.get("working_weekends", [])),
            cutoff_hour=int(cfg.get("order_cutoff_hour", 20)),
        )

    def is_working_day(self, day: date) -> bool:
        if day in self.working_weekends:
            return True
        if day in self.holidays:
            return False
        return day.weekday() < 5

    def production_start(self, placed_at: DateLike) -> date:
        """Orders placed at or after the cutoff hour count as placed the next day."""
        if isinstance(placed_at, datetime):
            day = placed_at.date()
            if placed_at.hour >= self.cutoff_hour:
                day += timedelta(days=1)
            return day
        return placed_at

    def add_working_days(self, placed_at: DateLike, days: int) -> date:
        """
        Date on which ``days`` working days have elapsed after ``placed_at``.

        Counting starts the day after the order; zero days returns the start day.
        """
        current = self.production_start(placed_at)
        remaining = max(0, int(days))
        while remaining > 0:
            current += timedelta(days=1)
            if self.is_working_day(current):
                remaining -= 1
        return current


def _dates(values: Iterable[str]) -> FrozenSet[date]:
    return frozenset(date.fromisoformat(v) for v in values)


def add_working_days(placed_at: DateLike, days: int, rules: Optional[dict] = None) -> date:
    return FactoryCalendar.from_rules(rules).add_working_days(placed_at, days)
