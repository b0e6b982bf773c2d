"""Availability and reservation lifecycle engine for the hotel back office."""

__version__ = "0.1.0"
