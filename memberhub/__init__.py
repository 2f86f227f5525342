"""Membership and billing admin backend."""

__version__ = "0.3.0"
