"""Notification and settings synchronization core for the SIF app."""

__version__ = "1.0.0"
