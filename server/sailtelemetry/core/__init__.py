"""Telemetry normalization core: units, wind, polar, codec, simulator."""
