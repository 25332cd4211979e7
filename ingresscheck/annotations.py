"""Annotation extraction and typed parsing.

Values are read off plain API dicts (``metadata.annotations``). JSON-blob
annotations are parsed with strict Pydantic validation into one of three
tagged results so rule evaluators never inspect raw strings:

    Missing    none of the candidate keys is present
    Malformed  present, but not valid JSON of the expected shape
    Valid      present and parsed; ``value`` holds the typed payload
"""

from __future__ import annotations

import logging
from typing import Any, NamedTuple, Optional, Sequence, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from ingresscheck import config

logger = logging.getLogger("ingresscheck.annotations")


# ---------------------------------------------------------------------------
# Payload schemas
# ---------------------------------------------------------------------------

class BackendConfigRefs(BaseModel):
    """Parsed ``cloud.google.com/backend-config`` value."""
    default: str = ""
    ports: dict[str, str] = Field(default_factory=dict)

    def names(self) -> list[str]:
        """Referenced BackendConfig names: default first, then per port.

        Duplicates are kept; each reference is checked on its own.
        """
        names = [self.default] if self.default else []
        names.extend(self.ports.values())
        return names


class NegAnnotation(BaseModel):
    """Parsed ``cloud.google.com/neg`` value."""
    ingress: bool = False
    exposed_ports: dict[str, dict[str, Any]] = Field(default_factory=dict)


AppProtocols = dict[str, str]

# JSON ``null`` decodes to an empty payload rather than a malformed one.
_BACKEND_CONFIGS = TypeAdapter(Optional[BackendConfigRefs])
_APP_PROTOCOLS = TypeAdapter(Optional[AppProtocols])
_NEG = TypeAdapter(Optional[NegAnnotation])


# ---------------------------------------------------------------------------
# Tagged parse results
# ---------------------------------------------------------------------------

class Missing(NamedTuple):
    keys: tuple[str, ...]


class Malformed(NamedTuple):
    key: str
    raw: str
    reason: str


class Valid(NamedTuple):
    key: str
    value: Any


ParseResult = Union[Missing, Malformed, Valid]


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def annotations_of(obj: dict[str, Any]) -> dict[str, str]:
    """Return the annotations of an API object, ``{}`` when it has none."""
    return (obj.get("metadata") or {}).get("annotations") or {}


def extract(obj: dict[str, Any], keys: Sequence[str]) -> tuple[Optional[str], bool]:
    """Return ``(value, present)`` for the first of *keys* set on *obj*.

    Every candidate key is tried in order; absence is not an error.
    """
    found = _first_present(obj, keys)
    if found is None:
        return None, False
    return found[1], True


def _first_present(obj: dict[str, Any], keys: Sequence[str]) -> Optional[tuple[str, str]]:
    annotations = annotations_of(obj)
    for key in keys:
        if key in annotations:
            return key, annotations[key]
    return None


def _parse(obj: dict[str, Any], keys: Sequence[str], validate: Any) -> ParseResult:
    found = _first_present(obj, keys)
    if found is None:
        return Missing(tuple(keys))
    key, raw = found
    try:
        return Valid(key, validate(raw))
    except ValidationError as exc:
        logger.debug("Annotation %s is malformed: %s", key, exc)
        return Malformed(key, raw, _first_error(exc))


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    return errors[0]["msg"] if errors else str(exc)


# ---------------------------------------------------------------------------
# Typed parsers
# ---------------------------------------------------------------------------

def parse_backend_configs(svc: dict[str, Any]) -> ParseResult:
    return _parse(
        svc, config.BACKEND_CONFIG_KEYS,
        lambda raw: _BACKEND_CONFIGS.validate_json(raw, strict=True) or BackendConfigRefs(),
    )


def parse_app_protocols(svc: dict[str, Any]) -> ParseResult:
    return _parse(
        svc, config.APP_PROTOCOL_KEYS,
        lambda raw: _APP_PROTOCOLS.validate_json(raw, strict=True) or {},
    )


def parse_neg(svc: dict[str, Any]) -> ParseResult:
    return _parse(
        svc, config.NEG_KEYS,
        lambda raw: _NEG.validate_json(raw, strict=True) or NegAnnotation(),
    )


def frontend_config_name(ing: dict[str, Any]) -> tuple[Optional[str], bool]:
    return extract(ing, config.FRONTEND_CONFIG_KEYS)


def is_l7_ilb(ing: dict[str, Any]) -> bool:
    """True when the Ingress class annotation selects the internal L7 ILB."""
    value, present = extract(ing, (config.INGRESS_CLASS_KEY,))
    return present and value == config.L7_ILB_INGRESS_CLASS
