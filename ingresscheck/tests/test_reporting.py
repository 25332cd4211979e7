"""
Tests for reporting.py and models.py - report aggregation and rendering.
"""

import json

import pytest
from pydantic import ValidationError
from rich.console import Console

from ingresscheck.models import CheckId, CheckRecord, Report, ResourceReport, Verdict
from ingresscheck.reporting import render_json, render_table, summarize, write_report


def _report():
    resource = ResourceReport(namespace="shop", name="ing")
    for check_id, message, verdict in [
        (CheckId.frontend_config, "Ingress shop/ing does not have FrontendConfig annotation", Verdict.SKIPPED),
        (CheckId.service_existence, "Service shop/web found", Verdict.PASSED),
        (CheckId.service_existence, "Service shop/api does not exist", Verdict.FAILED),
    ]:
        resource.add(CheckRecord(id=check_id.value, message=message, verdict=verdict))
    return Report(resources=[resource])


def test_records_keep_append_order():
    """Test that the aggregator never re-orders or deduplicates records."""
    resource = _report().resources[0]

    assert [c.id for c in resource.checks] == [
        "FrontendConfigCheck", "ServiceExistenceCheck", "ServiceExistenceCheck",
    ]
    assert resource.verdicts(CheckId.service_existence) == [Verdict.PASSED, Verdict.FAILED]


def test_check_records_are_immutable():
    """Test that a check record cannot be changed once created."""
    record = CheckRecord(id="IngressRuleCheck", message="ok", verdict=Verdict.PASSED)
    with pytest.raises(ValidationError):
        record.verdict = Verdict.FAILED


def test_render_json_shape():
    """Test the external JSON report layout."""
    data = json.loads(render_json(_report()))

    assert data == {
        "resources": [{
            "kind": "Ingress",
            "namespace": "shop",
            "name": "ing",
            "checks": [
                {
                    "id": "FrontendConfigCheck",
                    "message": "Ingress shop/ing does not have FrontendConfig annotation",
                    "verdict": "SKIPPED",
                },
                {"id": "ServiceExistenceCheck", "message": "Service shop/web found", "verdict": "PASSED"},
                {"id": "ServiceExistenceCheck", "message": "Service shop/api does not exist", "verdict": "FAILED"},
            ],
        }],
        "errors": [],
    }


def test_render_json_is_indented():
    """Test that the JSON output is two-space indented."""
    assert render_json(Report()).splitlines()[1].startswith('  "resources"')


def test_summarize_counts_verdicts():
    """Test verdict counts across resources."""
    assert summarize(_report()) == {"PASSED": 1, "FAILED": 1, "SKIPPED": 1}
    assert summarize(Report()) == {"PASSED": 0, "FAILED": 0, "SKIPPED": 0}


def test_render_table_lists_checks_and_errors():
    """Test the human-readable table output."""
    report = _report()
    report.errors.append("Error listing ingresses: 500 Boom")
    console = Console(record=True, width=200)

    console.print(render_table(report))
    text = console.export_text()

    assert "Ingress shop/ing" in text
    assert "Service shop/api does not exist" in text
    assert "Error: Error listing ingresses: 500 Boom" in text
    assert "FAILED: 1" in text


def test_write_report(tmp_path):
    """Test that the JSON report is written to disk."""
    path = write_report(_report(), tmp_path / "out" / "report.json")

    data = json.loads(path.read_text())
    assert data["resources"][0]["name"] == "ing"
