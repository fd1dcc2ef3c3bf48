"""
Analytics service for ratio trends.

Computes summary statistics and chart series over logged metrics.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any

import pandas as pd

from keto_tracker.domain.metrics import DailyMetric

logger = logging.getLogger(__name__)

CHART_WINDOW_DAYS = 30


@dataclass(frozen=True)
class RatioSummary:
    """Summary statistics for Dr. Boz ratios, rounded to one decimal."""

    count: int
    average: float
    minimum: float
    maximum: float
    latest: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "average": self.average,
            "min": self.minimum,
            "max": self.maximum,
            "latest": self.latest,
        }


def _to_frame(metrics: list[DailyMetric]) -> pd.DataFrame:
    rows = [{"date": m.date, "ratio": m.ratio} for m in metrics if m.date is not None]
    df = pd.DataFrame(rows, columns=["date", "ratio"])
    df["date"] = pd.to_datetime(df["date"])
    df["ratio"] = pd.to_numeric(df["ratio"], errors="coerce")
    return df.sort_values("date")


class AnalyticsService:
    """Statistics over a list of metrics."""

    def summarize(self, metrics: list[DailyMetric]) -> RatioSummary | None:
        """
        Summarize ratios across all metrics that have one.

        Args:
            metrics: Metrics in any order.

        Returns:
            Summary, or None when no metric has a ratio.
        """
        df = _to_frame(metrics).dropna(subset=["ratio"])
        if df.empty:
            return None

        ratios = df["ratio"]
        summary = RatioSummary(
            count=int(ratios.count()),
            average=round(float(ratios.mean()), 1),
            minimum=round(float(ratios.min()), 1),
            maximum=round(float(ratios.max()), 1),
            latest=round(float(ratios.iloc[-1]), 1),
        )
        logger.debug(f"Summarized {summary.count} ratios")
        return summary

    def chart_series(
        self, metrics: list[DailyMetric], today: date, days: int = CHART_WINDOW_DAYS
    ) -> list[tuple[str, float]]:
        """
        Ratio series for a trend chart.

        Args:
            metrics: Metrics in any order.
            today: Current calendar day.
            days: Window length; metrics older than this are left out.

        Returns:
            Oldest-first (label "MM/dd", ratio) pairs, ratio 0 when missing.
        """
        df = _to_frame(metrics)
        if df.empty:
            return []

        cutoff = pd.Timestamp(today) - pd.Timedelta(days=days)
        recent = df[df["date"] >= cutoff]
        labels = recent["date"].dt.strftime("%m/%d")
        ratios = recent["ratio"].fillna(0.0)
        return [(label, float(ratio)) for label, ratio in zip(labels, ratios)]
