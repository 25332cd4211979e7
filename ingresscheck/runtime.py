"""Runtime: connects to the cluster and runs the validation pipeline.

Connection and listing failures abort the run and land in
``Report.errors``; everything else is reported per check.
"""

from __future__ import annotations

import logging
from typing import Optional

from ingresscheck import config
from ingresscheck.cluster import ClusterAccessor, KubeAccessor, SnapshotAccessor
from ingresscheck.errors import ClusterConnectionError, IngressListError
from ingresscheck.models import Report
from ingresscheck.pipeline import IngressPipeline

logger = logging.getLogger("ingresscheck.runtime")


def connect(
    kubeconfig: Optional[str] = None,
    context: Optional[str] = None,
    snapshot: Optional[str] = None,
    request_timeout: int = config.REQUEST_TIMEOUT_SECONDS,
) -> ClusterAccessor:
    """Return a snapshot accessor when *snapshot* is set, else a live one.

    Raises
    ------
    ClusterConnectionError
        If the snapshot or any of the cluster clients cannot be loaded.
    """
    if snapshot:
        return SnapshotAccessor.load(snapshot)
    return KubeAccessor.connect(kubeconfig, context, request_timeout)


def run_pipeline(accessor: ClusterAccessor, namespace: Optional[str] = None) -> Report:
    """Check every Ingress visible through *accessor*."""
    report = Report()
    try:
        report.resources = IngressPipeline(accessor).run(namespace)
    except IngressListError as exc:
        logger.error("%s", exc)
        report.errors.append(str(exc))
    return report


def run_engine(
    namespace: Optional[str] = None,
    kubeconfig: Optional[str] = None,
    context: Optional[str] = None,
    snapshot: Optional[str] = None,
) -> Report:
    """Connect, then run the pipeline. Never raises for cluster errors."""
    try:
        accessor = connect(kubeconfig, context, snapshot)
    except ClusterConnectionError as exc:
        logger.error("%s", exc)
        return Report(errors=[str(exc)])
    return run_pipeline(accessor, namespace)
