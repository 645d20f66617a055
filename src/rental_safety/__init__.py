"""Rental listing fraud-risk checker."""

__version__ = "0.1.0"
