"""Refrigerator and dishwasher parts assistant."""

__version__ = "0.1.0"
