"""Shared utilities for nit-dashboard."""
