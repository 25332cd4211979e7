"""Cluster access: the read-only capability the pipeline depends on.

``ClusterAccessor`` is the whole surface the checks use. Two implementations:

* ``KubeAccessor`` talks to a live cluster through the official client. It
  is backed by three API clients (core/networking, BackendConfig custom
  objects, FrontendConfig custom objects), mirroring the three API groups.
* ``SnapshotAccessor`` serves objects from a JSON/YAML snapshot file, for
  offline checks and tests.

All objects are returned as plain camelCase dicts, the API's JSON form.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Optional, Protocol

import urllib3
import yaml
from kubernetes import client, config as k8s_config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

from ingresscheck import config
from ingresscheck.errors import ClusterConnectionError, IngressListError, ObjectLookupError

logger = logging.getLogger("ingresscheck.cluster")

# Errors a single API call can raise: HTTP status errors and transport errors.
_API_ERRORS = (ApiException, urllib3.exceptions.HTTPError)


class ClusterAccessor(Protocol):
    """Read-only lookups used by the validation pipeline."""

    def get_service(self, namespace: str, name: str) -> dict[str, Any]: ...

    def get_backend_config(self, namespace: str, name: str) -> dict[str, Any]: ...

    def get_frontend_config(self, namespace: str, name: str) -> dict[str, Any]: ...

    def list_ingresses(self, namespace: Optional[str] = None) -> list[dict[str, Any]]: ...


# ---------------------------------------------------------------------------
# Live cluster
# ---------------------------------------------------------------------------

def _new_api_client(kubeconfig: Optional[str], context: Optional[str], label: str) -> client.ApiClient:
    """Build one API client, falling back to in-cluster config.

    Raises
    ------
    ClusterConnectionError
        If neither kubeconfig nor in-cluster config can be loaded.
    """
    configuration = client.Configuration()
    try:
        k8s_config.load_kube_config(
            config_file=kubeconfig or None,
            context=context or None,
            client_configuration=configuration,
        )
        logger.debug("Loaded kubeconfig for %s client", label)
    except (ConfigException, OSError) as e1:
        logger.warning("Failed to load kubeconfig for %s client: %s", label, e1)
        try:
            k8s_config.load_incluster_config(client_configuration=configuration)
            logger.info("Loaded in-cluster config for %s client", label)
        except ConfigException as e2:
            raise ClusterConnectionError(
                f"Error connecting to Kubernetes ({label} client). "
                f"kubeconfig error: {e1}. in-cluster error: {e2}"
            ) from e2
    return client.ApiClient(configuration)


class KubeAccessor:
    """``ClusterAccessor`` over the Kubernetes API."""

    def __init__(
        self,
        api_client: client.ApiClient,
        backend_config_client: client.ApiClient,
        frontend_config_client: client.ApiClient,
        request_timeout: int = config.REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self._api_client = api_client
        self._core = client.CoreV1Api(api_client)
        self._networking = client.NetworkingV1Api(api_client)
        self._backend_configs = client.CustomObjectsApi(backend_config_client)
        self._frontend_configs = client.CustomObjectsApi(frontend_config_client)
        self._timeout = request_timeout

    @classmethod
    def connect(
        cls,
        kubeconfig: Optional[str] = None,
        context: Optional[str] = None,
        request_timeout: int = config.REQUEST_TIMEOUT_SECONDS,
    ) -> "KubeAccessor":
        """Build all three clients; any failure aborts with ClusterConnectionError."""
        api_client = _new_api_client(kubeconfig, context, "generic")
        be_client = _new_api_client(kubeconfig, context, "backendconfig")
        fe_client = _new_api_client(kubeconfig, context, "frontendconfig")
        logger.info("Connected to Kubernetes API at %s", api_client.configuration.host)
        return cls(api_client, be_client, fe_client, request_timeout)

    def _serialise(self, obj: Any) -> Any:
        """Convert a K8s API object to a plain dict via the client's serialiser."""
        return self._api_client.sanitize_for_serialization(obj)

    # --- ClusterAccessor ---------------------------------------------------

    def get_service(self, namespace: str, name: str) -> dict[str, Any]:
        try:
            svc = self._core.read_namespaced_service(
                name, namespace, _request_timeout=self._timeout,
            )
        except _API_ERRORS as exc:
            raise ObjectLookupError("Service", namespace, name, _reason(exc)) from exc
        return self._serialise(svc)

    def get_backend_config(self, namespace: str, name: str) -> dict[str, Any]:
        try:
            return self._backend_configs.get_namespaced_custom_object(
                config.BACKEND_CONFIG_GROUP, config.BACKEND_CONFIG_VERSION,
                namespace, config.BACKEND_CONFIG_PLURAL, name,
                _request_timeout=self._timeout,
            )
        except _API_ERRORS as exc:
            raise ObjectLookupError("BackendConfig", namespace, name, _reason(exc)) from exc

    def get_frontend_config(self, namespace: str, name: str) -> dict[str, Any]:
        try:
            return self._frontend_configs.get_namespaced_custom_object(
                config.FRONTEND_CONFIG_GROUP, config.FRONTEND_CONFIG_VERSION,
                namespace, config.FRONTEND_CONFIG_PLURAL, name,
                _request_timeout=self._timeout,
            )
        except _API_ERRORS as exc:
            raise ObjectLookupError("FrontendConfig", namespace, name, _reason(exc)) from exc

    def list_ingresses(self, namespace: Optional[str] = None) -> list[dict[str, Any]]:
        try:
            if namespace:
                result = self._networking.list_namespaced_ingress(
                    namespace, _request_timeout=self._timeout,
                )
            else:
                result = self._networking.list_ingress_for_all_namespaces(
                    _request_timeout=self._timeout,
                )
        except _API_ERRORS as exc:
            raise IngressListError(f"Error listing ingresses: {_reason(exc)}") from exc
        return self._serialise(result).get("items") or []

    # --- Snapshot collection -----------------------------------------------

    def snapshot(self, namespace: Optional[str] = None) -> dict[str, list[dict[str, Any]]]:
        """Collect every ingress-related object for offline checking.

        Ingresses must be listable; the other kinds degrade to an empty list
        (e.g. when the BackendConfig CRD is not installed).
        """
        snap = {"ingresses": self.list_ingresses(namespace)}
        snap["services"] = self._safe_list("services", lambda: self._list_services(namespace))
        snap["backendconfigs"] = self._safe_list(
            "backendconfigs",
            lambda: self._list_custom(
                self._backend_configs, config.BACKEND_CONFIG_GROUP,
                config.BACKEND_CONFIG_VERSION, config.BACKEND_CONFIG_PLURAL, namespace,
            ),
        )
        snap["frontendconfigs"] = self._safe_list(
            "frontendconfigs",
            lambda: self._list_custom(
                self._frontend_configs, config.FRONTEND_CONFIG_GROUP,
                config.FRONTEND_CONFIG_VERSION, config.FRONTEND_CONFIG_PLURAL, namespace,
            ),
        )
        return snap

    def _list_services(self, namespace: Optional[str]) -> list[dict[str, Any]]:
        if namespace:
            result = self._core.list_namespaced_service(namespace, _request_timeout=self._timeout)
        else:
            result = self._core.list_service_for_all_namespaces(_request_timeout=self._timeout)
        return self._serialise(result).get("items") or []

    def _list_custom(
        self,
        api: client.CustomObjectsApi,
        group: str,
        version: str,
        plural: str,
        namespace: Optional[str],
    ) -> list[dict[str, Any]]:
        if namespace:
            result = api.list_namespaced_custom_object(
                group, version, namespace, plural, _request_timeout=self._timeout,
            )
        else:
            result = api.list_cluster_custom_object(
                group, version, plural, _request_timeout=self._timeout,
            )
        return result.get("items") or []

    @staticmethod
    def _safe_list(label: str, fn: Any) -> list[dict[str, Any]]:
        """Call *fn* and return its items, or ``[]`` when the API refuses."""
        try:
            return fn()
        except _API_ERRORS as exc:
            logger.warning("Could not list %s: %s", label, _reason(exc))
            return []


def _reason(exc: Exception) -> str:
    if isinstance(exc, ApiException):
        return f"{exc.status} {exc.reason}"
    return str(exc)


# ---------------------------------------------------------------------------
# Offline snapshot
# ---------------------------------------------------------------------------

_KIND_TO_SECTION = {
    "Ingress": "ingresses",
    "Service": "services",
    "BackendConfig": "backendconfigs",
    "FrontendConfig": "frontendconfigs",
}


class SnapshotAccessor:
    """``ClusterAccessor`` over an in-memory snapshot of API objects."""

    def __init__(
        self,
        ingresses: Iterable[dict[str, Any]] = (),
        services: Iterable[dict[str, Any]] = (),
        backendconfigs: Iterable[dict[str, Any]] = (),
        frontendconfigs: Iterable[dict[str, Any]] = (),
    ) -> None:
        self._ingresses = list(ingresses)
        self._services = _index(services)
        self._backend_configs = _index(backendconfigs)
        self._frontend_configs = _index(frontendconfigs)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SnapshotAccessor":
        """Accept ``{"ingresses": [...], ...}`` or a ``kind: List`` document."""
        if data.get("kind") == "List":
            sections: dict[str, list[dict[str, Any]]] = {s: [] for s in _KIND_TO_SECTION.values()}
            for item in data.get("items") or []:
                section = _KIND_TO_SECTION.get(item.get("kind", ""))
                if section is None:
                    logger.debug("Ignoring %s object in snapshot", item.get("kind"))
                    continue
                sections[section].append(item)
            return cls(**sections)
        return cls(**{s: data.get(s) or [] for s in _KIND_TO_SECTION.values()})

    @classmethod
    def load(cls, path: str | Path) -> "SnapshotAccessor":
        """Read a JSON or YAML snapshot file.

        Raises
        ------
        ClusterConnectionError
            If the file cannot be read or does not hold a snapshot.
        """
        try:
            with open(path, encoding="utf-8") as fh:
                data = yaml.safe_load(fh)
        except (OSError, yaml.YAMLError) as exc:
            raise ClusterConnectionError(f"Error reading snapshot {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ClusterConnectionError(f"Snapshot {path} is not a mapping")
        logger.info("Loaded snapshot from %s", path)
        return cls.from_dict(data)

    def get_service(self, namespace: str, name: str) -> dict[str, Any]:
        return _lookup(self._services, "Service", namespace, name)

    def get_backend_config(self, namespace: str, name: str) -> dict[str, Any]:
        return _lookup(self._backend_configs, "BackendConfig", namespace, name)

    def get_frontend_config(self, namespace: str, name: str) -> dict[str, Any]:
        return _lookup(self._frontend_configs, "FrontendConfig", namespace, name)

    def list_ingresses(self, namespace: Optional[str] = None) -> list[dict[str, Any]]:
        if not namespace:
            return list(self._ingresses)
        return [
            ing for ing in self._ingresses
            if object_key(ing)[0] == namespace
        ]


def object_key(obj: dict[str, Any]) -> tuple[str, str]:
    """Return ``(namespace, name)`` for an API object."""
    meta = obj.get("metadata") or {}
    return meta.get("namespace") or "default", meta.get("name", "")


def _index(objs: Iterable[dict[str, Any]]) -> dict[tuple[str, str], dict[str, Any]]:
    result = {}
    for obj in objs:
        result[object_key(obj)] = obj
    return result


def _lookup(
    index: dict[tuple[str, str], dict[str, Any]],
    kind: str,
    namespace: str,
    name: str,
) -> dict[str, Any]:
    try:
        return index[(namespace, name)]
    except KeyError:
        raise ObjectLookupError(kind, namespace, name, "not found") from None
