"""Lyrica - currently-playing track with time-synchronized lyrics."""

__version__ = "0.3.0"
