"""Error taxonomy for ingresscheck.

Only ``ClusterConnectionError`` and ``IngressListError`` abort a run.
``ObjectLookupError`` is raised by accessors and degrades to a FAILED check.
Missing and malformed annotations are not exceptions at all; see
``ingresscheck.annotations``.
"""

from __future__ import annotations


class IngressCheckError(Exception):
    """Base class for every error raised by ingresscheck."""


class ClusterConnectionError(IngressCheckError):
    """A cluster client (or snapshot) could not be set up."""


class IngressListError(IngressCheckError):
    """Ingresses could not be enumerated."""


class ObjectLookupError(IngressCheckError):
    """A single object could not be fetched (not found or access error)."""

    def __init__(self, kind: str, namespace: str, name: str, reason: str = "") -> None:
        self.kind = kind
        self.namespace = namespace
        self.name = name
        self.reason = reason
        msg = f"{kind} {namespace}/{name} could not be fetched"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)
