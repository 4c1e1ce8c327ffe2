"""Agenda - booking scheduler and billing engine for a cleaning service."""

__version__ = "0.3.0"
