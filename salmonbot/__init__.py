"""Salmon Run rotation notifier for Discord."""

__version__ = "0.1.0"
