"""Foxlist: local task persistence, accounts and deadline alerts."""

__version__ = "1.0.0"
