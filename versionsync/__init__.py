"""Resolve, increment and check in embedded build versions."""

__version__ = "0.1.0"
