"""Application settings and configuration management."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _default_config_dir() -> Path:
    """Return the default configuration directory."""
    return Path.home() / ".nutritrack"


@dataclass
class SubscriptionConfig:
    """Trial and grace window configuration."""

    trial_days: int = 5
    grace_days: int = 7
    expiring_notice_days: int = 2


@dataclass
class MetricsConfig:
    """Body metrics configuration."""

    default_activity_level: str = "moderate"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"


@dataclass
class Settings:
    """Main application settings."""

    subscription: SubscriptionConfig = field(default_factory=SubscriptionConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """Load settings from YAML file or return defaults.

        Args:
            config_path: Path to config.yaml. If None, uses ~/.nutritrack/config.yaml

        Returns:
            Settings instance
        """
        if config_path is None:
            config_path = _default_config_dir() / "config.yaml"

        if not config_path.exists():
            return cls()

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        settings = cls()

        # Parse subscription config
        if "subscription" in data:
            sub_data = data["subscription"]
            if "trial_days" in sub_data:
                settings.subscription.trial_days = int(sub_data["trial_days"])
            if "grace_days" in sub_data:
                settings.subscription.grace_days = int(sub_data["grace_days"])
            if "expiring_notice_days" in sub_data:
                settings.subscription.expiring_notice_days = int(
                    sub_data["expiring_notice_days"]
                )

        # Parse metrics config
        if "metrics" in data:
            metrics_data = data["metrics"]
            if "default_activity_level" in metrics_data:
                settings.metrics.default_activity_level = str(
                    metrics_data["default_activity_level"]
                )

        if "logging" in data:
            log_data = data["logging"]
            if "level" in log_data:
                level = str(log_data["level"]).upper()
                if level in LOG_LEVELS:
                    settings.logging.level = level
                else:
                    logger.warning(
                        "Unknown logging level %r in %s, using %s",
                        log_data["level"],
                        config_path,
                        settings.logging.level,
                    )

        return settings

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save current settings to YAML file.

        Args:
            config_path: Path to save config.yaml. If None, uses ~/.nutritrack/config.yaml
        """
        if config_path is None:
            config_path = _default_config_dir() / "config.yaml"

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "subscription": {
                "trial_days": self.subscription.trial_days,
                "grace_days": self.subscription.grace_days,
                "expiring_notice_days": self.subscription.expiring_notice_days,
            },
            "metrics": {
                "default_activity_level": self.metrics.default_activity_level,
            },
            "logging": {
                "level": self.logging.level,
            },
        }

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance, loading from disk if needed."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reload_settings(config_path: Optional[Path] = None) -> Settings:
    """Force reload settings from disk."""
    global _settings
    _settings = Settings.load(config_path)
    return _settings
