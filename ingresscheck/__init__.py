"""ingresscheck - consistency checks for GKE Ingress configuration."""

__version__ = "0.1.0"
