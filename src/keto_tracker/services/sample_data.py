"""
Sample data generator.

Fills the last fourteen days with plausible readings whose ratio improves
from not-yet-in-ketosis toward deep ketosis, for demos and screenshots.
"""

import logging
import math
import random
from dataclasses import dataclass
from datetime import date, timedelta

from keto_tracker.domain.metrics import DailyMetric
from keto_tracker.services.repository import MetricRepository

logger = logging.getLogger(__name__)

SAMPLE_DAYS = 14
MAX_EXISTING_METRICS = 10


@dataclass(frozen=True)
class SampleDataResult:
    """Outcome of a generation request."""

    success: bool
    message: str
    count: int = 0


def _target_ratio(days_ago: int, rng: random.Random) -> float:
    if days_ago >= 10:
        return 100 + rng.random() * 20
    if days_ago >= 6:
        return 70 + rng.random() * 20
    if days_ago >= 2:
        return 50 + rng.random() * 20
    return 30 + rng.random() * 20


def build_sample_metric(day: date, days_ago: int, rng: random.Random) -> DailyMetric:
    """
    Build one sample day.

    Args:
        day: Calendar day of the metric.
        days_ago: Distance from today, which drives the target ratio.
        rng: Random source.

    Returns:
        A metric with glucose 4.0-5.5 mmol/L and ketones kept in 0.3-3.5.
    """
    glucose = 4.0 + rng.random() * 1.5
    ketones = glucose / _target_ratio(days_ago, rng)

    if ketones < 0.3:
        ketones = 0.3 + rng.random() * 0.2
    elif ketones > 3.5:
        ketones = 2.5 + rng.random() * 1.0

    progress = SAMPLE_DAYS - 1 - days_ago
    return DailyMetric(
        date=day,
        glucose=round(glucose, 1),
        ketones=round(ketones, 1),
        weight=round(82.0 - progress * 0.1, 1) if days_ago % 3 == 0 else None,
        energy=min(math.floor(5 + progress * 0.3), 10) if days_ago % 2 == 0 else None,
        clarity=min(math.floor(6 + progress * 0.25), 10) if days_ago % 2 == 0 else None,
    )


async def generate_sample_data(
    repository: MetricRepository, rng: random.Random | None = None
) -> SampleDataResult:
    """
    Save fourteen days of sample metrics through the repository.

    Days that already have data are left alone. Refuses when the user has
    MAX_EXISTING_METRICS or more metrics already.
    """
    rng = rng or random.Random()
    existing = await repository.get_daily_metrics()

    if len(existing) >= MAX_EXISTING_METRICS:
        return SampleDataResult(
            False,
            "You already have enough data. Clear existing data first if you want to regenerate.",
        )

    existing_dates = {m.date for m in existing}
    today = repository.today()
    count = 0

    try:
        for days_ago in range(SAMPLE_DAYS - 1, -1, -1):
            day = today - timedelta(days=days_ago)
            if day in existing_dates:
                continue
            await repository.save_daily_metric(build_sample_metric(day, days_ago, rng))
            count += 1
    except Exception as e:
        logger.error(f"Error generating sample data after {count} days: {e}")
        return SampleDataResult(False, "Failed to generate sample data. Please try again.", count)

    logger.info(f"Generated {count} days of sample data")
    return SampleDataResult(True, f"Generated {count} days of sample data!", count)
