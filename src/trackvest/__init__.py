"""TrackVest market-data acquisition and caching layer."""

__version__ = "0.1.0"
