"""Check functions: existence lookups and single-rule evaluators.

Each check is a pure function over already-fetched API dicts (plus, for
existence checks, one read-only lookup through the accessor) and returns a
``CheckRecord``. Checks that gate further traversal also return the object
or payload the caller descends into, ``None`` when the branch stops.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from ingresscheck import config
from ingresscheck.annotations import (
    BackendConfigRefs,
    Malformed,
    Missing,
    frontend_config_name,
    parse_app_protocols,
    parse_backend_configs,
    parse_neg,
)
from ingresscheck.cluster import ClusterAccessor, object_key
from ingresscheck.errors import ObjectLookupError
from ingresscheck.models import CheckId, CheckRecord, Verdict

logger = logging.getLogger("ingresscheck.checks")

Lookup = Callable[[str, str], dict[str, Any]]


# ===================================================================
# Helpers
# ===================================================================

def _key(obj: dict[str, Any]) -> str:
    """Return ``namespace/name`` for an API object."""
    return "/".join(object_key(obj))


def _record(check_id: CheckId, verdict: Verdict, message: str) -> CheckRecord:
    logger.debug("%s %s: %s", check_id.value, verdict.value, message)
    return CheckRecord(id=check_id.value, message=message, verdict=verdict)


# ===================================================================
# Existence checker
# ===================================================================

def check_exists(
    lookup: Lookup,
    kind: str,
    namespace: str,
    name: str,
) -> tuple[Optional[dict[str, Any]], Verdict, str]:
    """Fetch *kind* ``namespace/name`` once via *lookup*.

    Not-found and access errors are both FAILED; nothing is retried. An
    empty name is FAILED without a lookup.
    """
    if not name:
        return None, Verdict.FAILED, f"{kind} {namespace}/{name} does not exist"
    try:
        obj = lookup(namespace, name)
    except ObjectLookupError as exc:
        logger.debug("Lookup failed: %s", exc)
        return None, Verdict.FAILED, f"{kind} {namespace}/{name} does not exist"
    return obj, Verdict.PASSED, f"{kind} {namespace}/{name} found"


def check_service_existence(
    namespace: str,
    name: str,
    accessor: ClusterAccessor,
) -> tuple[Optional[dict[str, Any]], CheckRecord]:
    svc, verdict, msg = check_exists(accessor.get_service, "Service", namespace, name)
    return svc, _record(CheckId.service_existence, verdict, msg)


def check_backend_config_existence(
    namespace: str,
    name: str,
    svc_name: str,
    accessor: ClusterAccessor,
) -> tuple[Optional[dict[str, Any]], CheckRecord]:
    be_config, verdict, msg = check_exists(
        accessor.get_backend_config, "BackendConfig", namespace, name,
    )
    return be_config, _record(
        CheckId.backend_config_existence, verdict,
        f"{msg} (referenced by service {namespace}/{svc_name})",
    )


# ===================================================================
# Ingress rules
# ===================================================================

def check_frontend_config(
    ing: dict[str, Any],
    accessor: ClusterAccessor,
) -> tuple[Optional[dict[str, Any]], CheckRecord]:
    """SKIPPED without a FrontendConfig annotation, else an existence check."""
    name, present = frontend_config_name(ing)
    if not present:
        return None, _record(
            CheckId.frontend_config, Verdict.SKIPPED,
            f"Ingress {_key(ing)} does not have FrontendConfig annotation",
        )
    namespace = object_key(ing)[0]
    fe_config, verdict, msg = check_exists(
        accessor.get_frontend_config, "FrontendConfig", namespace, name,
    )
    return fe_config, _record(CheckId.frontend_config, verdict, msg)


def check_ingress_rule(rule: dict[str, Any]) -> tuple[Optional[dict[str, Any]], CheckRecord]:
    """Return the rule's ``http`` value, FAILED when it has none."""
    http = rule.get("http")
    host = rule.get("host") or "*"
    if http is None:
        return None, _record(
            CheckId.ingress_rule, Verdict.FAILED,
            f"IngressRule for host {host} has no HTTPIngressRuleValue",
        )
    return http, _record(
        CheckId.ingress_rule, Verdict.PASSED,
        f"IngressRule for host {host} has HTTPIngressRuleValue",
    )


# ===================================================================
# Service annotations
# ===================================================================

def check_app_protocol_annotation(svc: dict[str, Any]) -> CheckRecord:
    """Every declared port protocol must be HTTP, HTTPS or HTTP2."""
    parsed = parse_app_protocols(svc)
    if isinstance(parsed, Missing):
        return _record(
            CheckId.app_protocol_annotation, Verdict.SKIPPED,
            f"Service {_key(svc)} does not have AppProtocol annotation",
        )
    if isinstance(parsed, Malformed):
        return _record(
            CheckId.app_protocol_annotation, Verdict.FAILED,
            f"AppProtocol annotation is in invalid format in service {_key(svc)}",
        )
    for port, proto in parsed.value.items():
        if proto not in config.ACCEPTED_APP_PROTOCOLS:
            return _record(
                CheckId.app_protocol_annotation, Verdict.FAILED,
                f"Invalid port application protocol in service {_key(svc)}: "
                f"{proto} (port {port})",
            )
    return _record(
        CheckId.app_protocol_annotation, Verdict.PASSED,
        f"AppProtocol annotation is valid in service {_key(svc)}",
    )


def check_l7_ilb_neg_annotation(svc: dict[str, Any]) -> CheckRecord:
    """Internal L7 ILB backends need a NEG annotation with ``ingress`` unset."""
    parsed = parse_neg(svc)
    suffix = f"in service {_key(svc)} for internal HTTP(S) load balancing"
    if isinstance(parsed, Missing):
        return _record(
            CheckId.l7_ilb_neg_annotation, Verdict.FAILED,
            f"No Neg annotation found {suffix}",
        )
    if isinstance(parsed, Malformed):
        return _record(
            CheckId.l7_ilb_neg_annotation, Verdict.FAILED,
            f"Invalid Neg annotation found {suffix}",
        )
    if parsed.value.ingress:
        return _record(
            CheckId.l7_ilb_neg_annotation, Verdict.FAILED,
            f"Neg annotation ingress field is true {suffix}",
        )
    return _record(
        CheckId.l7_ilb_neg_annotation, Verdict.PASSED,
        f"Neg annotation is set correctly {suffix}",
    )


def check_backend_config_annotation(
    svc: dict[str, Any],
) -> tuple[Optional[BackendConfigRefs], CheckRecord]:
    parsed = parse_backend_configs(svc)
    if isinstance(parsed, Missing):
        return None, _record(
            CheckId.backend_config_annotation, Verdict.SKIPPED,
            f"Service {_key(svc)} does not have backendconfig annotation",
        )
    if isinstance(parsed, Malformed):
        return None, _record(
            CheckId.backend_config_annotation, Verdict.FAILED,
            f"BackendConfig annotation is invalid in service {_key(svc)}",
        )
    return parsed.value, _record(
        CheckId.backend_config_annotation, Verdict.PASSED,
        f"BackendConfig annotation is valid in service {_key(svc)}",
    )


# ===================================================================
# BackendConfig rules
# ===================================================================

def check_health_check_config(be_config: dict[str, Any], svc_name: str) -> CheckRecord:
    """``timeoutSec`` must not exceed ``checkIntervalSec``.

    Omitted fields take the GCE defaults.
    """
    namespace = object_key(be_config)[0]
    where = f"BackendConfig {_key(be_config)} in service {namespace}/{svc_name}"

    spec = be_config.get("spec") or {}
    health_check = spec.get("healthCheck") if isinstance(spec, dict) else spec
    if health_check is None:
        return _record(
            CheckId.health_check_config, Verdict.SKIPPED,
            f"{where} does not have healthcheck specified",
        )
    if not isinstance(health_check, dict):
        return _record(
            CheckId.health_check_config, Verdict.FAILED,
            f"{where} has a healthcheck that is not an object",
        )

    timeout = health_check.get("timeoutSec", config.DEFAULT_HEALTH_CHECK_TIMEOUT_SEC)
    interval = health_check.get("checkIntervalSec", config.DEFAULT_HEALTH_CHECK_INTERVAL_SEC)
    if not _is_seconds(timeout) or not _is_seconds(interval):
        return _record(
            CheckId.health_check_config, Verdict.FAILED,
            f"{where} has non-integer healthcheck timeoutSec or checkIntervalSec",
        )
    if timeout > interval:
        return _record(
            CheckId.health_check_config, Verdict.FAILED,
            f"{where} has healthcheck timeoutSec greater than checkIntervalSec",
        )
    return _record(
        CheckId.health_check_config, Verdict.PASSED,
        f"{where} healthcheck configuration is valid",
    )


def _is_seconds(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
