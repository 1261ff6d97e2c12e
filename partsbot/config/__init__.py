"""Configuration package."""
from partsbot.config.settings import Settings, settings

__all__ = ["Settings", "settings"]
