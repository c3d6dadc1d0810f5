"""Voicecraft: style-aware writing assistant engine."""

__version__ = "1.0.0"
