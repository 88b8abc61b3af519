"""Sailing telemetry normalization service."""

__version__ = "0.1.0"
