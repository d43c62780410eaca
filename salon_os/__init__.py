"""Salon OS - staff availability and appointment reflection engine."""

__version__ = "0.1.0"
