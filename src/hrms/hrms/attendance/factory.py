from __future__ import annotations

from dataclasses import dataclass

from ..core.constants import HALF_DAY_THRESHOLD_HOURS
from .strategies.base import AttendanceStrategy
from .strategies.half_day_strategy import HalfDayStrategy
from .strategies.present_strategy import PresentStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    half_day_threshold_hours: float = HALF_DAY_THRESHOLD_HOURS

    def for_checkin(self) -> AttendanceStrategy:
        return PresentStrategy()

    def for_checkout(self, *, work_hours: float) -> AttendanceStrategy:
        if work_hours < self.half_day_threshold_hours:
            return HalfDayStrategy()
        return PresentStrategy()
