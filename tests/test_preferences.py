"""Tests for theme preferences."""

import pytest

from keto_tracker.services.preferences import DEFAULT_THEME, PreferencesService
from keto_tracker.utils.exceptions import LocalStoreError


@pytest.mark.asyncio
async def test_theme_defaults_and_saves(local) -> None:
    """Test the default theme and a saved selection."""
    preferences = PreferencesService(local)

    if await preferences.get_user_theme() != DEFAULT_THEME:
        raise AssertionError("Expected the default theme")

    await preferences.save_user_theme("Dark Mode")
    if await preferences.get_user_theme() != "Dark Mode":
        raise AssertionError("Expected the saved theme")


@pytest.mark.asyncio
async def test_custom_colors(local) -> None:
    """Test custom colours are stored as a mapping."""
    preferences = PreferencesService(local)
    colors = {"primary": "#10b981", "background": "#ffffff"}

    if await preferences.get_custom_theme_colors() is not None:
        raise AssertionError("Expected no custom colours initially")

    await preferences.save_custom_theme_colors(colors)
    if await preferences.get_custom_theme_colors() != colors:
        raise AssertionError("Expected the saved colours")


@pytest.mark.asyncio
async def test_storage_failures_fall_back(local) -> None:
    """Test preference failures are logged and defaults returned."""
    preferences = PreferencesService(local)
    local.read_error = LocalStoreError("unreadable")
    local.write_error = LocalStoreError("read-only")

    await preferences.save_user_theme("Dark Mode")

    if await preferences.get_user_theme() != DEFAULT_THEME:
        raise AssertionError("Expected the default theme on failure")
    if await preferences.get_custom_theme_colors() is not None:
        raise AssertionError("Expected no colours on failure")
