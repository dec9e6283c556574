"""Seat reservation and booking-consistency service."""

__version__ = "1.0.0"
