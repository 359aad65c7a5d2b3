"""LLM usage analytics: summary, daily spend and provider breakdown."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from nit_dashboard.aggregation.normalize import as_record, numeric_from_unknown


def _number(record: dict[str, Any], key: str) -> float:
    return numeric_from_unknown(record.get(key)) or 0.0


@dataclass(frozen=True)
class UsageSummary:
    total_requests: int = 0
    total_tokens: int = 0
    total_cost_usd: float = 0.0
    avg_duration_ms: float | None = None
    max_duration_ms: float | None = None

    @classmethod
    def from_api(cls, raw: Any) -> UsageSummary:
        record = as_record(raw) or {}
        return cls(
            total_requests=int(_number(record, "totalRequests")),
            total_tokens=int(_number(record, "totalTokens")),
            total_cost_usd=_number(record, "totalCostUsd"),
            avg_duration_ms=numeric_from_unknown(record.get("avgDurationMs")),
            max_duration_ms=numeric_from_unknown(record.get("maxDurationMs")),
        )


@dataclass(frozen=True)
class UsageDailyPoint:
    date: str
    total_requests: int
    total_tokens: int
    total_cost_usd: float

    @classmethod
    def from_api(cls, raw: Any) -> UsageDailyPoint | None:
        record = as_record(raw)
        if record is None or not isinstance(record.get("date"), str):
            return None
        return cls(
            date=record["date"],
            total_requests=int(_number(record, "totalRequests")),
            total_tokens=int(_number(record, "totalTokens")),
            total_cost_usd=_number(record, "totalCostUsd"),
        )


@dataclass(frozen=True)
class UsageBreakdownRow:
    provider: str
    model: str
    requests: int
    tokens: int
    total_cost_usd: float
    avg_duration_ms: float | None = None

    @classmethod
    def from_api(cls, raw: Any) -> UsageBreakdownRow | None:
        record = as_record(raw)
        if record is None:
            return None
        provider = record.get("provider")
        model = record.get("model")
        return cls(
            provider=provider if isinstance(provider, str) and provider else "unknown",
            model=model if isinstance(model, str) and model else "unknown",
            requests=int(_number(record, "requests")),
            tokens=int(_number(record, "tokens")),
            total_cost_usd=_number(record, "totalCostUsd"),
            avg_duration_ms=numeric_from_unknown(record.get("avgDurationMs")),
        )


def cost_by_provider(rows: list[UsageBreakdownRow]) -> list[tuple[str, float]]:
    """Total spend per provider, in first-seen provider order."""
    totals: dict[str, float] = {}
    for row in rows:
        totals[row.provider] = totals.get(row.provider, 0.0) + row.total_cost_usd
    return list(totals.items())


def rank_breakdown(rows: list[UsageBreakdownRow]) -> list[UsageBreakdownRow]:
    """Breakdown rows ordered by spend, most expensive first."""
    return sorted(rows, key=lambda row: row.total_cost_usd, reverse=True)
