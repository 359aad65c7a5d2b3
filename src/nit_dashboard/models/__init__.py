"""Data models for nit-dashboard."""

from nit_dashboard.models.reports import (
    Bug,
    CoverageReport,
    DriftResult,
    DriftTimelinePoint,
    Project,
    SecurityFinding,
    parse_records,
)

__all__ = [
    "Bug",
    "CoverageReport",
    "DriftResult",
    "DriftTimelinePoint",
    "Project",
    "SecurityFinding",
    "parse_records",
]
