"""
Beach Radar - crowd report ingestion and consensus.

Anonymous visitors report how crowded a beach is right now. This package
accepts those reports through a rate-limited ingestion gate and turns the
recent ones into a single time-decayed consensus per location.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
