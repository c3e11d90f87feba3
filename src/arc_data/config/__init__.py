"""Configuration for arc-data."""

from arc_data.config.settings import Settings

__all__ = ["Settings"]
