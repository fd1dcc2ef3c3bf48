"""Unit tests for ratio analytics."""

from datetime import timedelta

from keto_tracker.services.analytics import AnalyticsService
from tests.conftest import TODAY, make_metric


def test_summary_statistics() -> None:
    """Test average, min, max and latest over the logged ratios."""
    metrics = [
        make_metric(TODAY, glucose=4.5, ketones=1.5),
        make_metric(TODAY - timedelta(days=2), glucose=5.0, ketones=0.5),
        make_metric(TODAY - timedelta(days=1), glucose=4.0, ketones=0.8),
    ]

    summary = AnalyticsService().summarize(metrics)

    if summary is None:
        raise AssertionError("Expected a summary")
    if summary.count != 3:
        raise AssertionError(f"Expected 3 ratios, got {summary.count}")
    if summary.average != 6.0:
        raise AssertionError(f"Expected average 6.0, got {summary.average}")
    if summary.minimum != 3.0 or summary.maximum != 10.0:
        raise AssertionError(f"Unexpected range {summary.minimum}-{summary.maximum}")
    if summary.latest != 3.0:
        raise AssertionError(f"Latest should be today's ratio, got {summary.latest}")
    if summary.to_dict()["max"] != 10.0:
        raise AssertionError("to_dict should use short keys")


def test_summary_none_without_ratios() -> None:
    """Test no summary is produced for no data."""
    if AnalyticsService().summarize([]) is not None:
        raise AssertionError("Expected None for an empty list")


def test_chart_series_window_and_order() -> None:
    """Test the chart covers the window, oldest first, with MM/dd labels."""
    metrics = [
        make_metric(TODAY, glucose=4.5, ketones=1.5),
        make_metric(TODAY - timedelta(days=45)),
        make_metric(TODAY - timedelta(days=3), glucose=5.0, ketones=0.5),
    ]

    series = AnalyticsService().chart_series(metrics, TODAY)

    labels = [label for label, _ in series]
    if labels != ["01/12", "01/15"]:
        raise AssertionError(f"Unexpected labels {labels}")
    if series[-1][1] != 3.0:
        raise AssertionError(f"Expected today's ratio 3.0, got {series[-1][1]}")


def test_chart_series_empty() -> None:
    """Test no metrics give an empty series."""
    if AnalyticsService().chart_series([], TODAY) != []:
        raise AssertionError("Expected an empty series")
