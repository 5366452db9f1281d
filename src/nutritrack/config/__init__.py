"""Configuration loading for nutritrack."""

from __future__ import annotations

from nutritrack.config.settings import Settings, get_settings, reload_settings

__all__ = ["Settings", "get_settings", "reload_settings"]
