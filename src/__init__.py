"""Cycle journal — a private journaling service on a 364-day calendar."""

__version__ = "0.1.0"
