"""Report builder: renders a ``Report`` as JSON or as Rich tables.

Pure functions over the aggregated check records; the pipeline never
formats output itself.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from rich.console import Group
from rich.table import Table
from rich.text import Text

from ingresscheck.models import Report, ResourceReport, Verdict
from ingresscheck.utils import write_json

logger = logging.getLogger("ingresscheck.reporting")

VERDICT_STYLES = {
    Verdict.PASSED: "green",
    Verdict.FAILED: "bold red",
    Verdict.SKIPPED: "yellow",
}


def report_data(report: Report) -> dict:
    """Plain-dict form of *report*, verdicts as strings."""
    return report.model_dump(mode="json")


def render_json(report: Report) -> str:
    """Indented JSON; identical reports render byte-identically."""
    return json.dumps(report_data(report), indent=2)


def write_report(report: Report, path: str | Path) -> Path:
    out = write_json(report_data(report), path)
    logger.info("JSON report written to %s", out)
    return out


def summarize(report: Report) -> dict[str, int]:
    """Count checks per verdict across all resources."""
    counts = {v.value: 0 for v in Verdict}
    for resource in report.resources:
        for check in resource.checks:
            counts[check.verdict.value] += 1
    return counts


# ---------------------------------------------------------------------------
# Table output
# ---------------------------------------------------------------------------

def _resource_table(resource: ResourceReport) -> Table:
    table = Table(
        title=f"{resource.kind} {resource.namespace}/{resource.name}",
        show_header=True,
        header_style="bold magenta",
        title_justify="left",
    )
    table.add_column("Check", style="cyan", no_wrap=True)
    table.add_column("Result", justify="center")
    table.add_column("Message")
    for check in resource.checks:
        table.add_row(
            check.id,
            Text(check.verdict.value, style=VERDICT_STYLES[check.verdict]),
            check.message,
        )
    return table


def render_table(report: Report) -> Group:
    """One table per resource, then errors and a verdict summary line."""
    parts: list = [_resource_table(r) for r in report.resources]
    if not report.resources and not report.errors:
        parts.append(Text("No ingresses found.", style="dim"))
    for error in report.errors:
        parts.append(Text(f"Error: {error}", style="bold red"))

    counts = summarize(report)
    summary = Text("\n")
    for i, verdict in enumerate(Verdict):
        if i:
            summary.append("  ")
        summary.append(f"{verdict.value}: {counts[verdict.value]}", style=VERDICT_STYLES[verdict])
    parts.append(summary)
    return Group(*parts)
