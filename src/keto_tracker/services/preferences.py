"""Theme preferences, kept in the local store only."""

import logging
from typing import Any

from keto_tracker.infrastructure.local_store import keys
from keto_tracker.infrastructure.local_store.store import LocalStore, get_json, set_json
from keto_tracker.utils.exceptions import LocalStoreError

logger = logging.getLogger(__name__)

DEFAULT_THEME = "Modern Minimal"


class PreferencesService:
    """Reads fall back to defaults; write failures are logged, not raised."""

    def __init__(self, local: LocalStore) -> None:
        self.local = local

    async def get_user_theme(self) -> str:
        try:
            theme = await get_json(self.local, keys.USER_THEME)
        except LocalStoreError as e:
            logger.error(f"Error loading user theme: {e}")
            return DEFAULT_THEME
        return theme if isinstance(theme, str) and theme else DEFAULT_THEME

    async def save_user_theme(self, theme_name: str) -> None:
        try:
            await set_json(self.local, keys.USER_THEME, theme_name)
        except LocalStoreError as e:
            logger.error(f"Error saving user theme: {e}")

    async def get_custom_theme_colors(self) -> dict[str, Any] | None:
        try:
            colors = await get_json(self.local, keys.CUSTOM_THEME_COLORS)
        except LocalStoreError as e:
            logger.error(f"Error loading custom theme colors: {e}")
            return None
        return colors if isinstance(colors, dict) else None

    async def save_custom_theme_colors(self, colors: dict[str, Any]) -> None:
        try:
            await set_json(self.local, keys.CUSTOM_THEME_COLORS, colors)
        except LocalStoreError as e:
            logger.error(f"Error saving custom theme colors: {e}")
