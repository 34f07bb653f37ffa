"""Judicial case aggregation and pagination layer for the Colombian judicial portal."""

__version__ = "0.1.0"
