"""
Fasting protocol phases.

Twelve ordered phases, each with a fixed duration in days except the last,
which is a maintenance phase that never advances.
"""

from dataclasses import dataclass
from datetime import date

from keto_tracker.domain.metrics import UserProfile
from keto_tracker.utils.timezone_utils import days_between

FINAL_PHASE = 12


@dataclass(frozen=True)
class Phase:
    """A protocol phase."""

    number: int
    name: str
    description: str
    duration: int | None
    requirements: str


PHASES: dict[int, Phase] = {
    p.number: p
    for p in (
        Phase(1, "Foundation Start", "Eat every 2-4 hours, <20g total carbs", 7,
              "Keep carbs under 20g total. Eat when hungry."),
        Phase(2, "Foundation Extended", "Eat every 6-8 hours, <20g total carbs", 7,
              "Space meals 6-8 hours apart. Track ketones."),
        Phase(3, "Keto-Adapted", "Accidentally miss meals without hunger", 7,
              "Natural meal skipping. Sustained ketones >0.5"),
        Phase(4, "Two Meals (2MAD)", "Intentional two meals per day", 7,
              "Two meals daily. 10-12 hour eating window."),
        Phase(5, "16:8 Fasting", "Restrict calories to 8-hour window", 14,
              "16 hour fast daily. Eating window: 8 hours."),
        Phase(6, "Clean Morning", "No calories/sweeteners before eating window", 14,
              "Water, black coffee, salt only outside window."),
        Phase(7, "OMAD (23:1)", "One meal per day", 14,
              "Single meal daily. Dr. Boz Ratio target: <100"),
        Phase(8, "Advanced OMAD", "Meal during daylight, 12hr pre-sunrise fast", 14,
              "Meal between 11am-6pm. No food 12hrs before sunrise."),
        Phase(9, "36-Hour Fast", "Extended fast for metabolic stress", 7,
              "Weekly 36hr fast. Water, salt, electrolytes only."),
        Phase(10, "48-Hour Fast", "Deeper autophagy activation", 7,
              "Complete 48 hours without food. Monitor closely."),
        Phase(11, "72-Hour Fast", "Maximum autophagy trigger", 7,
              "Full 72hr fast. Medical supervision recommended."),
        Phase(12, "Autophagy Master", "Regular 72hr fasting cycles", None,
              "Repeat 72hr fasts as needed. Maintenance phase."),
    )
}


def days_in_phase(profile: UserProfile, today: date) -> int:
    """Whole days since the profile entered its current phase."""
    return days_between(profile.phase_start_date, today)


def next_phase_profile(profile: UserProfile, today: date) -> UserProfile | None:
    """
    Compute the advanced profile if the current phase has run its course.

    Advances at most one phase per call, even when several durations have
    elapsed since phase_start_date.

    Args:
        profile: Current profile.
        today: Current calendar day.

    Returns:
        The profile in the next phase starting today, or None if the
        profile should stay where it is.
    """
    phase = PHASES[profile.current_phase]
    if phase.duration is None:
        return None

    if days_in_phase(profile, today) < phase.duration:
        return None

    return profile.model_copy(
        update={
            "current_phase": min(profile.current_phase + 1, FINAL_PHASE),
            "phase_start_date": today,
        }
    )
