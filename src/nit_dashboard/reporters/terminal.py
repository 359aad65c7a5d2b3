"""Terminal reporter with rich output formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from nit_dashboard.aggregation.bugs import SEVERITY_ORDER
from nit_dashboard.aggregation.runs import ROOT_PACKAGE_LABEL
from nit_dashboard.aggregation.security import severity_segments
from nit_dashboard.utils.format import (
    compact_tokens,
    to_currency,
    to_date_time,
    to_number,
    to_percent,
    truncate,
)

if TYPE_CHECKING:
    from nit_dashboard.aggregation.bugs import BugSummary
    from nit_dashboard.aggregation.prs import PRGroup
    from nit_dashboard.alerts.config import AlertConfig
    from nit_dashboard.memory.loader import MemoryState
    from nit_dashboard.views import (
        CoverageView,
        DriftView,
        OverviewView,
        RunsView,
        SecurityView,
        UsageView,
    )

console = Console()

_GOOD_COVERAGE = 80.0
_FAIR_COVERAGE = 50.0
_MAX_HEATMAP_ROWS = 15
_MAX_DESCRIPTION_LENGTH = 60
_MAX_PATTERN_LENGTH = 90
_SHORT_SHA = 7

_TONE_COLORS = {"good": "green", "warn": "yellow", "danger": "red", "neutral": "dim"}
_SEVERITY_COLORS = {"critical": "red", "high": "orange3", "medium": "yellow", "low": "dim"}
_RISK_COLORS = {"CRITICAL": "bold red", "HIGH": "red", "MEDIUM": "yellow", "LOW": "green"}
_MAX_RISK_PATH_LENGTH = 46


def _coverage_color(percent: float) -> str:
    """Return a Rich color name for a coverage percentage."""
    if percent >= _GOOD_COVERAGE:
        return "green"
    if percent >= _FAIR_COVERAGE:
        return "yellow"
    return "red"


def _colored_percent(percent: float) -> str:
    color = _coverage_color(percent)
    return f"[{color}]{percent:.1f}%[/{color}]"


class DashboardReporter:
    """Rich terminal output for the dashboard commands."""

    def __init__(self, output: Console | None = None) -> None:
        self.console = output or console

    def print_header(self, title: str) -> None:
        self.console.print(f"\n[bold cyan]{title}[/bold cyan]\n")

    def print_success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_info(self, message: str) -> None:
        self.console.print(f"[dim]{message}[/dim]")

    # ── Projects ─────────────────────────────────────────────────────

    def print_overview(self, view: OverviewView) -> None:
        summary = view.summary
        self.console.print(
            Panel(
                f"Projects: [bold]{summary.projects}[/bold]   "
                f"Runs: [bold]{to_number(summary.total_runs)}[/bold]   "
                f"Bugs: [bold]{to_number(summary.total_bugs)}[/bold]   "
                f"Issues: [bold]{to_number(summary.total_issues)}[/bold]   "
                f"PRs: [bold]{to_number(summary.total_prs)}[/bold]   "
                f"Tokens: [bold]{compact_tokens(summary.total_tokens)}[/bold]",
                title="Portfolio",
                border_style="cyan",
            )
        )

        if not view.rows:
            self.print_info("No projects yet.")
            return

        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Project")
        table.add_column("ID", style="dim")
        table.add_column("Coverage", justify="right")
        table.add_column("Last run")
        table.add_column("Open bugs", justify="right")
        table.add_column("Health")

        for row in view.rows:
            report = row.latest_report
            coverage = to_percent(report.overall_coverage) if report else "n/a"
            color = _TONE_COLORS.get(row.health.tone, "white")
            table.add_row(
                row.project.name,
                row.project.id,
                coverage,
                to_date_time(report.created_at) if report else "n/a",
                str(row.open_bugs),
                f"[{color}]{row.health.label}[/{color}]",
            )

        self.console.print(table)

    # ── Coverage ─────────────────────────────────────────────────────

    def print_coverage(self, view: CoverageView) -> None:
        if view.report_count == 0:
            self.print_info("No coverage reports yet.")
            return

        latest = view.latest_coverage or 0.0
        delta_color = "green" if view.delta >= 0 else "red"
        self.console.print(
            f"Coverage: {_colored_percent(latest)} "
            f"([{delta_color}]{view.delta:+.1f} pts[/{delta_color}] vs previous run), "
            f"{view.report_count} reports"
        )

        breakdown = view.type_breakdown
        if breakdown.has_data:
            parts = [
                f"{label}: {value:.1f}%" if value is not None else f"{label}: n/a"
                for label, value in (
                    ("unit", breakdown.unit),
                    ("integration", breakdown.integration),
                    ("e2e", breakdown.e2e),
                )
            ]
            self.print_info("   ".join(parts))

        if view.packages:
            table = Table(title="Packages", show_header=True, header_style="bold cyan")
            table.add_column("Package")
            table.add_column("Reports", justify="right")
            table.add_column("Coverage", justify="right")
            table.add_column("Pass rate", justify="right")
            for package in view.packages:
                table.add_row(
                    package.package_id or ROOT_PACKAGE_LABEL,
                    str(package.reports),
                    _colored_percent(package.avg_coverage),
                    f"{package.pass_rate:.1f}%",
                )
            self.console.print(table)

        if view.heatmap:
            table = Table(
                title="Least covered files", show_header=True, header_style="bold cyan"
            )
            table.add_column("File")
            table.add_column("Coverage", justify="right")
            for point in view.heatmap[:_MAX_HEATMAP_ROWS]:
                table.add_row(point.path, _colored_percent(point.coverage_percent))
            self.console.print(table)

    # ── Runs & PRs ───────────────────────────────────────────────────

    def print_runs(self, view: RunsView) -> None:
        if view.packages:
            labels = ", ".join(option.label for option in view.packages)
            self.print_info(f"Packages: {labels}")

        if not view.runs:
            self.print_info("No runs yet.")
            return

        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Run", style="dim")
        table.add_column("When")
        table.add_column("Mode")
        table.add_column("Branch")
        table.add_column("Commit", style="dim")
        table.add_column("Packages", justify="right")
        table.add_column("Tests", justify="right")
        table.add_column("Passed", justify="right", style="green")
        table.add_column("Failed", justify="right", style="red")
        table.add_column("Coverage", justify="right")
        table.add_column("Tokens", justify="right")

        for run in view.runs:
            table.add_row(
                run.run_id,
                to_date_time(run.created_at),
                run.run_mode or "n/a",
                run.branch or "n/a",
                (run.commit_sha or "")[:_SHORT_SHA],
                str(len(run.reports)),
                str(run.total_tests),
                str(run.total_passed),
                str(run.total_failed),
                to_percent(run.avg_coverage),
                compact_tokens(run.llm_total_tokens),
            )

        self.console.print(table)

    def print_prs(self, groups: list[PRGroup]) -> None:
        if not groups:
            self.print_info("No pull requests with coverage reports yet.")
            return

        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("PR", justify="right")
        table.add_column("Branch")
        table.add_column("Updated")
        table.add_column("Reports", justify="right")
        table.add_column("Coverage", justify="right")
        table.add_column("Tests", justify="right")
        table.add_column("Bugs", justify="right")
        table.add_column("Cost", justify="right")

        for group in groups:
            table.add_row(
                f"#{group.pr_number}",
                group.branch or "n/a",
                to_date_time(group.latest_date),
                str(len(group.reports)),
                _colored_percent(group.avg_coverage),
                str(group.total_tests),
                str(group.total_bugs_found),
                to_currency(group.total_cost),
            )

        self.console.print(table)

    # ── Bugs & drift ─────────────────────────────────────────────────

    def print_bugs(self, summary: BugSummary) -> None:
        self.console.print(
            f"Bugs: [bold]{summary.total}[/bold]   "
            f"open: [yellow]{len(summary.open_bugs)}[/yellow]   "
            f"closed: [green]{len(summary.closed_bugs)}[/green]   "
            f"fix rate: {summary.fix_rate:.1f}%"
        )

        if not summary.open_bugs:
            self.print_success("No open bugs.")
            return

        table = Table(title="Open bugs", show_header=True, header_style="bold cyan")
        table.add_column("Severity")
        table.add_column("File")
        table.add_column("Function")
        table.add_column("Description")
        table.add_column("Found")

        for severity, bugs in summary.by_severity.items():
            color = _SEVERITY_COLORS.get(severity, "white")
            for bug in bugs:
                table.add_row(
                    f"[{color}]{severity}[/{color}]",
                    bug.file_path,
                    bug.function_name or "",
                    truncate(bug.description, _MAX_DESCRIPTION_LENGTH),
                    to_date_time(bug.created_at),
                )

        self.console.print(table)
        unknown = [s for s in summary.by_severity if s not in SEVERITY_ORDER]
        if unknown:
            self.print_warning(f"Unrecognised severities: {', '.join(unknown)}")

    def print_drift(self, view: DriftView) -> None:
        summary = view.summary
        self.console.print(
            f"Drifted: [yellow]{len(summary.drifted)}[/yellow]   "
            f"failed: [red]{len(summary.failed)}[/red]   "
            f"avg similarity: {summary.avg_similarity:.1f}%"
        )

        if not view.rows:
            self.print_info("No drift results yet.")
            return

        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Test")
        table.add_column("Status")
        table.add_column("Similarity", justify="right")
        table.add_column("Checked")
        table.add_column("Baseline accepted")

        for row in view.rows:
            result = row.result
            similarity = (
                f"{result.similarity_score * 100:.1f}%"
                if result.similarity_score is not None
                else "n/a"
            )
            status_color = {"drifted": "yellow", "error": "red"}.get(result.status, "green")
            table.add_row(
                row.test_name,
                f"[{status_color}]{result.status}[/{status_color}]",
                similarity,
                to_date_time(result.created_at),
                to_date_time(row.baseline_accepted_at) if row.baseline_accepted_at else "",
            )

        self.console.print(table)

    # ── Security ─────────────────────────────────────────────────────

    def print_security(self, view: SecurityView) -> None:
        if view.is_empty:
            self.print_info("No security data. Run a security scan with nit to collect findings.")
            return

        summary = view.summary
        avg_risk = f"{view.risk.avg_score * 100:.0f}" if view.risk.top_risky_files else "n/a"
        self.console.print(
            f"Findings: [bold]{summary.total_findings}[/bold]   "
            f"open: [yellow]{summary.open_findings}[/yellow]   "
            f"critical/high: [red]{summary.critical_or_high}[/red]   "
            f"avg risk score: {avg_risk}"
        )
        segments = severity_segments(summary)
        if segments:
            self.console.print(
                "   ".join(
                    f"[{_SEVERITY_COLORS[severity]}]{severity}[/] {count} ({percent:.0f}%)"
                    for severity, count, percent in segments
                )
            )

        if view.risk.top_risky_files:
            risk_table = Table(title="Riskiest files", show_header=True, header_style="bold cyan")
            risk_table.add_column("File")
            risk_table.add_column("Level")
            risk_table.add_column("Score", justify="right")
            for risk_file in view.risk.top_risky_files:
                color = _RISK_COLORS.get(risk_file.level, "green")
                risk_table.add_row(
                    truncate(risk_file.file_path, _MAX_RISK_PATH_LENGTH),
                    f"[{color}]{risk_file.level}[/{color}]",
                    f"{risk_file.overall_score * 100:.0f}",
                )
            self.console.print(risk_table)

        if not view.findings:
            return

        table = Table(title="Findings", show_header=True, header_style="bold cyan")
        table.add_column("Severity")
        table.add_column("Title")
        table.add_column("Location")
        table.add_column("Type")
        table.add_column("Status")
        table.add_column("Confidence", justify="right")

        for severity, findings in view.by_severity.items():
            color = _SEVERITY_COLORS.get(severity, "white")
            for finding in findings:
                table.add_row(
                    f"[{color}]{severity}[/{color}]",
                    truncate(finding.title, _MAX_DESCRIPTION_LENGTH),
                    finding.location,
                    finding.vulnerability_type,
                    finding.status,
                    f"{finding.confidence * 100:.0f}%" if finding.confidence is not None else "",
                )

        self.console.print(table)

    # ── Memory & usage ───────────────────────────────────────────────

    def print_memory(self, state: MemoryState) -> None:
        if state.error:
            self.print_error(state.error)
            return

        latest = to_date_time(state.latest_date) if state.latest_date else "n/a"
        self.console.print(f"Snapshots: [bold]{state.snapshot_count}[/bold]   latest: {latest}")

        for title, items, color in (
            ("Learned patterns", state.patterns, "green"),
            ("Failed approaches", state.failed_approaches, "red"),
        ):
            self.console.print(f"\n[bold {color}]{title}[/bold {color}] ({len(items)})")
            if not items:
                self.print_info("  none recorded")
            for item in items:
                self.console.print(f"  • {truncate(item, _MAX_PATTERN_LENGTH)}")

        if state.growth:
            total = state.growth[-1].cumulative
            self.print_info(f"\nMemory items across sampled reports: {total}")

    def print_usage(self, view: UsageView) -> None:
        summary = view.summary
        self.console.print(
            Panel(
                f"Requests: [bold]{to_number(summary.total_requests)}[/bold]   "
                f"Tokens: [bold]{compact_tokens(summary.total_tokens)}[/bold]   "
                f"Cost: [bold]{to_currency(summary.total_cost_usd)}[/bold]",
                title="LLM usage",
                border_style="cyan",
            )
        )

        if not view.breakdown:
            self.print_info("No LLM usage recorded.")
            return

        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Provider")
        table.add_column("Model")
        table.add_column("Requests", justify="right")
        table.add_column("Tokens", justify="right")
        table.add_column("Cost", justify="right")

        for row in view.breakdown:
            table.add_row(
                row.provider,
                row.model,
                to_number(row.requests),
                compact_tokens(row.tokens),
                to_currency(row.total_cost_usd),
            )

        self.console.print(table)

    # ── Settings ─────────────────────────────────────────────────────

    def print_alert_config(self, config: AlertConfig) -> None:
        table = Table(show_header=False, box=None)
        table.add_column("Setting", style="cyan")
        table.add_column("Value")
        table.add_row("Slack webhook", "configured" if config.slack_webhook else "not set")
        table.add_row("Email threshold (USD)", config.email_threshold_usd or "not set")
        table.add_row("Budget alert (%)", config.budget_alert_percent or "not set")
        table.add_row("Email recipients", config.email_recipients or "not set")
        table.add_row("Resend API key", "configured" if config.resend_api_key else "not set")
        table.add_row("From address", config.email_from_address or "not set")
        self.console.print(table)
