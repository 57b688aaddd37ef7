"""Trace waterfall layout engine."""

__version__ = "0.1.0"
