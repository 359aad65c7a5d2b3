"""Pure aggregation functions turning platform records into dashboard views.

Modules in this package must not import :mod:`nit_dashboard.models` at
runtime: the models import :mod:`nit_dashboard.aggregation.normalize`.
"""

from nit_dashboard.aggregation.heatmap import FileHeatPoint, extract_file_heatmap
from nit_dashboard.aggregation.normalize import as_record, numeric_from_unknown
from nit_dashboard.aggregation.packages import PackageSummary, package_breakdown
from nit_dashboard.aggregation.prs import PRGroup, group_by_pr
from nit_dashboard.aggregation.runs import RunGroup, group_by_run_id, unique_packages
from nit_dashboard.aggregation.trend import TrendPoint, build_trend

__all__ = [
    "FileHeatPoint",
    "PRGroup",
    "PackageSummary",
    "RunGroup",
    "TrendPoint",
    "as_record",
    "build_trend",
    "extract_file_heatmap",
    "group_by_pr",
    "group_by_run_id",
    "numeric_from_unknown",
    "package_breakdown",
    "unique_packages",
]
