"""
Display formatting for gold prices and percentage changes.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


def format_gold(value: Optional[float]) -> str:
    """``12.3`` -> ``"12.30 G"``; missing values render as zero."""
    if value is None:
        return "0.00 G"
    return f"{value:.2f} G"


def format_percent(value: Optional[float]) -> str:
    """Signed percentage: ``1.234`` -> ``"+1.23%"``, ``-2`` -> ``"-2.00%"``."""
    if value is None:
        return "0.00%"
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.2f}%"


@dataclass(frozen=True)
class CurrentComparison:
    """A hovered price relative to the current price."""

    delta: float
    percent: float

    @property
    def trend(self) -> str:
        if self.delta > 0:
            return "up"
        if self.delta < 0:
            return "down"
        return "stable"

    @property
    def display_text(self) -> str:
        return f"{format_gold(self.delta)} ({self.percent:.2f}%)"


def compare_to_current(price: float, current_price: float) -> CurrentComparison:
    """Compare a price with the current one (a zero current counts as 1)."""
    delta = price - current_price
    return CurrentComparison(delta=delta, percent=(delta / (current_price or 1)) * 100)
