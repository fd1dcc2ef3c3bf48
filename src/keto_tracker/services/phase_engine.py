"""
Phase engine: advances the user through the fasting protocol.

Advancement is single-step per call. A user returning after a long absence
moves forward one phase each time the check runs, not straight to the phase
their elapsed time would imply.
"""

import logging

from keto_tracker.domain.metrics import UserProfile
from keto_tracker.domain.phases import PHASES, Phase, days_in_phase, next_phase_profile
from keto_tracker.services.repository import MetricRepository

logger = logging.getLogger(__name__)


class PhaseEngine:
    """Checks phase durations and persists advancement through the repository."""

    def __init__(self, repository: MetricRepository) -> None:
        self.repository = repository

    async def check_phase_advancement(self, profile: UserProfile) -> UserProfile:
        """
        Advance the profile one phase if its current phase has run its course.

        Args:
            profile: Current profile.

        Returns:
            The advanced and persisted profile, or the input unchanged.

        Raises:
            PersistenceError: If the advanced profile could not be saved anywhere.
        """
        updated = next_phase_profile(profile, self.repository.today())
        if updated is None:
            return profile

        logger.info(f"Advancing from phase {profile.current_phase} to phase {updated.current_phase}")
        await self.repository.save_user_profile(updated)
        return updated

    async def current_profile(self) -> UserProfile:
        """Load the profile and apply any due advancement."""
        profile = await self.repository.get_user_profile()
        return await self.check_phase_advancement(profile)

    def current_phase(self, profile: UserProfile) -> Phase:
        return PHASES[profile.current_phase]

    def days_remaining(self, profile: UserProfile) -> int | None:
        """Days left in the current phase; None for the open-ended final phase."""
        duration = PHASES[profile.current_phase].duration
        if duration is None:
            return None
        return max(duration - days_in_phase(profile, self.repository.today()), 0)
