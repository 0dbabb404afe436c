"""FPMM index - materialized market maker state from ordered chain events."""

__version__ = "0.1.0"
