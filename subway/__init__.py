"""Subway line and section management backend."""

__version__ = "0.1.0"
