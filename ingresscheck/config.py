"""ingresscheck configuration: constants, defaults, annotation keys.

All tunables live here so checks stay free of magic strings.
Override at runtime via environment variables or CLI flags.
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Cluster access
# ---------------------------------------------------------------------------

DEFAULT_KUBECONFIG: str = os.getenv(
    "KUBECONFIG", os.path.expanduser("~/.kube/config")
)

# Applied to every API call the accessor issues.
REQUEST_TIMEOUT_SECONDS: int = int(os.getenv("INGRESSCHECK_REQUEST_TIMEOUT", "30"))

# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

JSON_OUTPUT: str = "json"
TABLE_OUTPUT: str = "table"
SUPPORTED_OUTPUTS: tuple[str, ...] = (JSON_OUTPUT, TABLE_OUTPUT)
DEFAULT_OUTPUT_FORMAT: str = os.getenv("INGRESSCHECK_OUTPUT", JSON_OUTPUT)
DEFAULT_SNAPSHOT_FILE: str = "snapshots/ingress.json"

# ---------------------------------------------------------------------------
# Annotation keys (candidate keys are tried in order)
# ---------------------------------------------------------------------------

FRONTEND_CONFIG_KEYS: tuple[str, ...] = ("networking.gke.io/v1beta1.FrontendConfig",)
BACKEND_CONFIG_KEYS: tuple[str, ...] = (
    "cloud.google.com/backend-config",
    "beta.cloud.google.com/backend-config",
)
APP_PROTOCOL_KEYS: tuple[str, ...] = (
    "service.alpha.kubernetes.io/app-protocols",
    "cloud.google.com/app-protocols",
)
NEG_KEYS: tuple[str, ...] = ("cloud.google.com/neg",)
INGRESS_CLASS_KEY: str = "kubernetes.io/ingress.class"
L7_ILB_INGRESS_CLASS: str = "gce-internal"

ACCEPTED_APP_PROTOCOLS: frozenset[str] = frozenset({"HTTP", "HTTPS", "HTTP2"})

# ---------------------------------------------------------------------------
# Custom resources
# ---------------------------------------------------------------------------

BACKEND_CONFIG_GROUP: str = "cloud.google.com"
BACKEND_CONFIG_VERSION: str = "v1"
BACKEND_CONFIG_PLURAL: str = "backendconfigs"

FRONTEND_CONFIG_GROUP: str = "networking.gke.io"
FRONTEND_CONFIG_VERSION: str = "v1beta1"
FRONTEND_CONFIG_PLURAL: str = "frontendconfigs"

# ---------------------------------------------------------------------------
# Health check defaults applied by GCE when a field is omitted (seconds)
# ---------------------------------------------------------------------------

DEFAULT_HEALTH_CHECK_INTERVAL_SEC: int = 5
DEFAULT_HEALTH_CHECK_TIMEOUT_SEC: int = 5
