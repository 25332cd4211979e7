"""Validation pipeline: walks each Ingress's reference chain.

Traversal per Ingress (depth-first, records appended in production order):

    Ingress ─┬─ FrontendConfig                      FrontendConfigCheck
             └─ Service (default backend, then rule paths)
                  ├─ NEG annotation (internal L7 ILB only)
                  ├─ app-protocols annotation
                  └─ backend-config annotation
                       └─ BackendConfig (default, then per port)
                            └─ healthCheck

A missing or invalid prerequisite stops only its own branch. The accessor
is the single dependency and is supplied at construction.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from ingresscheck.annotations import BackendConfigRefs, is_l7_ilb
from ingresscheck.checks import (
    check_app_protocol_annotation,
    check_backend_config_annotation,
    check_backend_config_existence,
    check_frontend_config,
    check_health_check_config,
    check_ingress_rule,
    check_l7_ilb_neg_annotation,
    check_service_existence,
)
from ingresscheck.cluster import ClusterAccessor, object_key
from ingresscheck.models import ResourceReport

logger = logging.getLogger("ingresscheck.pipeline")


class IngressPipeline:
    """Runs the fixed check chain against every Ingress an accessor lists."""

    def __init__(self, accessor: ClusterAccessor) -> None:
        self.accessor = accessor

    def run(self, namespace: Optional[str] = None) -> list[ResourceReport]:
        """Check every Ingress in *namespace* (all namespaces when empty).

        Raises
        ------
        IngressListError
            If the Ingresses cannot be listed.
        """
        ingresses = self.accessor.list_ingresses(namespace)
        logger.info("Checking %d ingress(es) in %s", len(ingresses), namespace or "all namespaces")
        return [self.check_ingress(ing) for ing in ingresses]

    def check_ingress(self, ing: dict[str, Any]) -> ResourceReport:
        namespace, name = object_key(ing)
        report = ResourceReport(kind="Ingress", namespace=namespace, name=name)

        _, record = check_frontend_config(ing, self.accessor)
        report.add(record)

        l7_ilb = is_l7_ilb(ing)
        for svc_name in self._service_names(ing, report):
            self._check_service(namespace, svc_name, l7_ilb, report)

        logger.debug("Ingress %s/%s: %d check(s)", namespace, name, len(report.checks))
        return report

    def _service_names(self, ing: dict[str, Any], report: ResourceReport) -> list[str]:
        """Backend service names in first-seen order, duplicates kept.

        Records one IngressRuleCheck per rule along the way.
        """
        spec = ing.get("spec") or {}
        names: list[str] = []

        default_svc = _service_name(spec.get("defaultBackend"))
        if default_svc:
            names.append(default_svc)

        for rule in spec.get("rules") or []:
            http, record = check_ingress_rule(rule)
            report.add(record)
            if http is None:
                continue
            for path in http.get("paths") or []:
                svc_name = _service_name(path.get("backend"))
                if svc_name:
                    names.append(svc_name)
        return names

    def _check_service(
        self,
        namespace: str,
        svc_name: str,
        l7_ilb: bool,
        report: ResourceReport,
    ) -> None:
        svc, record = check_service_existence(namespace, svc_name, self.accessor)
        report.add(record)
        if svc is None:
            return

        if l7_ilb:
            report.add(check_l7_ilb_neg_annotation(svc))
        report.add(check_app_protocol_annotation(svc))

        refs, record = check_backend_config_annotation(svc)
        report.add(record)
        if refs is not None:
            self._check_backend_configs(namespace, svc_name, refs, report)

    def _check_backend_configs(
        self,
        namespace: str,
        svc_name: str,
        refs: BackendConfigRefs,
        report: ResourceReport,
    ) -> None:
        for be_name in refs.names():
            be_config, record = check_backend_config_existence(
                namespace, be_name, svc_name, self.accessor,
            )
            report.add(record)
            if be_config is not None:
                report.add(check_health_check_config(be_config, svc_name))


def _service_name(backend: Optional[dict[str, Any]]) -> str:
    """Service name of an IngressBackend, ``""`` for resource backends."""
    if not backend:
        return ""
    return (backend.get("service") or {}).get("name") or ""
