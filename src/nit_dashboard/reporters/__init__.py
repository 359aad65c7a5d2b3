"""Output reporters for nit-dashboard."""
