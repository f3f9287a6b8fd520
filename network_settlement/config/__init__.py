"""Configuration package."""

from network_settlement.config.settings import Settings, settings

__all__ = ["Settings", "settings"]
