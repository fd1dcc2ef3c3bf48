"""
Metric domain models and the Dr. Boz ratio.

This module defines the daily metric and user profile schema together with
the ratio computation and its classification bands.
"""

import datetime as dt
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

RATIO_SENTINEL = 999.0
"""Ratio reported when ketones read exactly zero."""


class RatioStatus(str, Enum):
    """Classification of a Dr. Boz ratio."""

    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    NEEDS_WORK = "Needs work"
    NO_DATA = "No data"


# (upper bound, status, colour); first band whose bound exceeds the ratio wins
_RATIO_BANDS: tuple[tuple[float, RatioStatus, str], ...] = (
    (40.0, RatioStatus.EXCELLENT, "#10b981"),
    (80.0, RatioStatus.GOOD, "#f59e0b"),
    (100.0, RatioStatus.FAIR, "#ef4444"),
    (float("inf"), RatioStatus.NEEDS_WORK, "#ef4444"),
)
_NO_DATA_COLOR = "#6b7280"


def calculate_ratio(glucose: float | None, ketones: float | None) -> float | None:
    """
    Compute the Dr. Boz ratio (glucose / ketones) rounded to one decimal.

    Args:
        glucose: Blood glucose in mmol/L.
        ketones: Blood ketones in mmol/L.

    Returns:
        The ratio, RATIO_SENTINEL when ketones are zero, or None when
        either reading is missing.
    """
    if glucose is None or ketones is None:
        return None
    if ketones == 0:
        return RATIO_SENTINEL
    return round(glucose / ketones, 1)


def _band(ratio: float) -> tuple[float, RatioStatus, str]:
    for band in _RATIO_BANDS:
        if ratio < band[0]:
            return band
    return _RATIO_BANDS[-1]


def ratio_status(ratio: float | None) -> RatioStatus:
    """Classify a ratio into its status band."""
    if ratio is None:
        return RatioStatus.NO_DATA
    return _band(ratio)[1]


def ratio_color(ratio: float | None) -> str:
    """Display colour (hex) for a ratio, consistent with ratio_status."""
    if ratio is None:
        return _NO_DATA_COLOR
    return _band(ratio)[2]


class _Document(BaseModel):
    """Base for models persisted as camelCase JSON documents."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict using the stored key names."""
        return self.model_dump(mode="json", by_alias=True)


class DailyMetric(_Document):
    """
    One day's readings.

    Keyed uniquely by date; saving a metric for an existing date replaces it.
    """

    date: dt.date | None = Field(None, description="Calendar day of the readings")
    glucose: float = Field(ge=0, description="Blood glucose in mmol/L")
    ketones: float = Field(ge=0, description="Blood ketones in mmol/L")
    ratio: float | None = Field(None, alias="drBozRatio", description="Derived glucose/ketones ratio")
    weight: float | None = Field(None, gt=0)
    energy: int | None = Field(None, ge=1, le=10)
    clarity: int | None = Field(None, ge=1, le=10)

    @model_validator(mode="after")
    def _fill_ratio(self) -> "DailyMetric":
        if self.ratio is None:
            self.ratio = calculate_ratio(self.glucose, self.ketones)
        return self

    @property
    def status(self) -> RatioStatus:
        return ratio_status(self.ratio)


class UserProfile(_Document):
    """Fasting protocol enrollment for one user (or one anonymous install)."""

    start_date: dt.date
    current_phase: int = Field(1, ge=1, le=12)
    phase_start_date: dt.date
    target_ratio: float = Field(80.0, alias="targetDrBozRatio", gt=0)

    @classmethod
    def default(cls, today: dt.date, target_ratio: float = 80.0) -> "UserProfile":
        """Profile for a user who starts phase 1 today."""
        return cls(
            start_date=today,
            current_phase=1,
            phase_start_date=today,
            target_ratio=target_ratio,
        )


def sort_metrics_desc(metrics: list[DailyMetric]) -> list[DailyMetric]:
    """Return metrics ordered newest first."""
    return sorted(metrics, key=lambda m: m.date or dt.date.min, reverse=True)
