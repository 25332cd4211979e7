"""Shared Pydantic models for ingresscheck.

Check records, per-resource reports and the full report all live here so
the pipeline, the report builder and the CLI agree on one shape.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Verdict(str, Enum):
    """Outcome of a single check."""
    PASSED = "PASSED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


class CheckId(str, Enum):
    """Fixed identifier of every rule the pipeline can emit."""
    frontend_config = "FrontendConfigCheck"
    ingress_rule = "IngressRuleCheck"
    service_existence = "ServiceExistenceCheck"
    l7_ilb_neg_annotation = "L7ILBNegAnnotationCheck"
    app_protocol_annotation = "AppProtocolAnnotationCheck"
    backend_config_annotation = "BackendConfigAnnotationCheck"
    backend_config_existence = "BackendConfigExistenceCheck"
    health_check_config = "HealthCheckConfigCheck"


# ---------------------------------------------------------------------------
# Check records & reports
# ---------------------------------------------------------------------------

class CheckRecord(BaseModel):
    """One (id, message, verdict) triple. Immutable once created."""
    model_config = ConfigDict(frozen=True)

    id: str
    message: str
    verdict: Verdict


class ResourceReport(BaseModel):
    """All checks run for one top-level resource, in traversal order."""
    kind: str = "Ingress"
    namespace: str
    name: str
    checks: list[CheckRecord] = Field(default_factory=list)

    def add(self, record: CheckRecord) -> CheckRecord:
        """Append *record*; records are never re-ordered or deduplicated."""
        self.checks.append(record)
        return record

    def verdicts(self, check_id: CheckId | str) -> list[Verdict]:
        """Verdicts of every record with *check_id*, in order."""
        name = _check_name(check_id)
        return [c.verdict for c in self.checks if c.id == name]


class Report(BaseModel):
    """Full output of one pipeline run."""
    resources: list[ResourceReport] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when the run completed without a pipeline-level error."""
        return not self.errors


def _check_name(check_id: CheckId | str) -> str:
    return check_id.value if isinstance(check_id, CheckId) else check_id
