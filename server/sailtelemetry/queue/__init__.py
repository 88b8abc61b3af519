"""Snapshot publication queues."""
