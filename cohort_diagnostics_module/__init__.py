"""Cohort Diagnostics job module package."""

__version__ = "0.6.0"
