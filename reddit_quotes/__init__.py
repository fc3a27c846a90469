"""Collect community quotes about configured topics from Reddit."""

__version__ = "0.1.0"
