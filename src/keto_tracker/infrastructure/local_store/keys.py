"""Local store keys."""

USER_PROFILE = "user_profile"
DAILY_METRICS = "daily_metrics"
USE_CLOUD_SYNC = "use_cloud_sync"
USER_THEME = "user_theme"
CUSTOM_THEME_COLORS = "custom_theme_colors"

_HAS_MIGRATED_TO_CLOUD = "has_migrated_to_cloud"


def migration_marker(user_id: str) -> str:
    """Per-user key recording that local data was migrated to the cloud."""
    return f"{_HAS_MIGRATED_TO_CLOUD}_{user_id}"
