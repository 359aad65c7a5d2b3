"""nit-dashboard: derived-state views over nit platform data."""

__version__ = "0.3.0"
