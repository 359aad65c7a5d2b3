"""Per-file coverage heatmap extraction from full report bodies.

Full report bodies are uploaded by different nit CLI versions and do not
share a schema. Each known layout is described by a ``(matcher, extractor)``
pair; every matching layout contributes candidates and the results are merged
by path.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from nit_dashboard.aggregation.normalize import (
    as_record,
    first_numeric,
    first_present,
    numeric_from_unknown,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

logger = logging.getLogger(__name__)

MAX_HEATMAP_POINTS = 60

_PATH_KEYS = ("path", "file", "name")
_FILE_COVERAGE_KEYS = ("coveragePercent", "coverage", "lineCoverage")
_MAP_COVERAGE_KEYS = ("pct", "coverage")


@dataclass(frozen=True)
class FileHeatPoint:
    """Coverage of a single file, as a percentage in 0..100."""

    path: str
    coverage_percent: float


def normalize_coverage_percent(raw: float) -> float:
    """Scale a fraction (``<= 1``) to percent and clamp to ``[0, 100]``."""
    value = raw * 100 if raw <= 1 else raw
    return max(0.0, min(100.0, value))


# ── Shape matchers / extractors ──────────────────────────────────


def _files_array(root: dict[str, Any]) -> list[Any] | None:
    files = root.get("files")
    return files if isinstance(files, list) else None


def _extract_files_array(root: dict[str, Any]) -> Iterator[tuple[str, float]]:
    """``{"files": [{"path": ..., "coverage": ...}, ...]}``."""
    for item in _files_array(root) or []:
        record = as_record(item)
        if record is None:
            continue

        path = first_present(record, _PATH_KEYS)
        raw = first_numeric(record, _FILE_COVERAGE_KEYS)
        if not isinstance(path, str) or not path or raw is None:
            continue

        yield path, raw


def _coverage_files_map(root: dict[str, Any]) -> dict[str, Any] | None:
    coverage = as_record(root.get("coverage"))
    return as_record(coverage.get("files")) if coverage is not None else None


def _extract_coverage_files_map(root: dict[str, Any]) -> Iterator[tuple[str, float]]:
    """``{"coverage": {"files": {"<path>": 87.5 | {"pct": ...}}}}``."""
    for path, value in (_coverage_files_map(root) or {}).items():
        record = as_record(value)
        raw = (
            first_numeric(record, _MAP_COVERAGE_KEYS)
            if record is not None
            else numeric_from_unknown(value)
        )
        if raw is None:
            continue

        yield path, raw


_SHAPES: tuple[
    tuple[
        Callable[[dict[str, Any]], object | None],
        Callable[[dict[str, Any]], Iterator[tuple[str, float]]],
    ],
    ...,
] = (
    (_files_array, _extract_files_array),
    (_coverage_files_map, _extract_coverage_files_map),
)


def extract_file_heatmap(full_report: Any) -> list[FileHeatPoint]:
    """Derive per-file coverage points from an arbitrarily-shaped report body.

    Args:
        full_report: Parsed JSON body of a report, or ``None``.

    Returns:
        At most ``MAX_HEATMAP_POINTS`` points sorted by ascending coverage
        (worst files first). When two layouts report the same path the higher
        coverage wins. An unknown or absent body yields an empty list.
    """
    root = as_record(full_report)
    if root is None:
        return []

    best: dict[str, FileHeatPoint] = {}
    for matcher, extractor in _SHAPES:
        if matcher(root) is None:
            continue

        for path, raw in extractor(root):
            point = FileHeatPoint(path=path, coverage_percent=normalize_coverage_percent(raw))
            existing = best.get(path)
            if existing is None or existing.coverage_percent < point.coverage_percent:
                best[path] = point

    if not best:
        logger.debug("No file-level coverage found in report body")

    points = sorted(best.values(), key=lambda point: point.coverage_percent)
    return points[:MAX_HEATMAP_POINTS]
