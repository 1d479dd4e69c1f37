"""Haul operations backend: trips, GPS distance, payroll and offline sync."""

__version__ = "0.1.0"
