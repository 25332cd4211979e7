"""
Tests for annotations.py - annotation extraction and typed parsing.

Objects are plain dicts in the API's JSON form, no cluster required.
"""

from ingresscheck.annotations import (
    BackendConfigRefs,
    Malformed,
    Missing,
    NegAnnotation,
    Valid,
    extract,
    is_l7_ilb,
    parse_app_protocols,
    parse_backend_configs,
    parse_neg,
)


def _svc(annotations=None):
    meta = {"name": "web", "namespace": "shop"}
    if annotations is not None:
        meta["annotations"] = annotations
    return {"metadata": meta}


def test_extract_returns_first_matching_key():
    """Test that the primary key wins over the fallback key."""
    svc = _svc({"a": "first", "b": "second"})
    assert extract(svc, ["a", "b"]) == ("first", True)


def test_extract_falls_back_to_later_key():
    """Test that a missing primary key does not hide the fallback key."""
    svc = _svc({"b": "second"})
    assert extract(svc, ["a", "b"]) == ("second", True)


def test_extract_absent_is_not_an_error():
    """Test that objects without annotations report absence."""
    assert extract(_svc(), ["a"]) == (None, False)
    assert extract(_svc({}), ["a"]) == (None, False)
    assert extract({}, ["a"]) == (None, False)
    assert extract({"metadata": {"annotations": None}}, ["a"]) == (None, False)


def test_extract_empty_value_is_present():
    """Test that an empty annotation value still counts as present."""
    assert extract(_svc({"a": ""}), ["a"]) == ("", True)


def test_parse_backend_configs_valid():
    """Test that a well-formed backend-config annotation parses to typed refs."""
    svc = _svc({"cloud.google.com/backend-config": '{"default": "bc", "ports": {"80": "bc-80"}}'})
    parsed = parse_backend_configs(svc)
    assert isinstance(parsed, Valid)
    assert parsed.key == "cloud.google.com/backend-config"
    assert parsed.value == BackendConfigRefs(default="bc", ports={"80": "bc-80"})


def test_parse_backend_configs_beta_key():
    """Test that the beta backend-config key is used as a fallback."""
    svc = _svc({"beta.cloud.google.com/backend-config": '{"ports": {"http": "bc-http"}}'})
    parsed = parse_backend_configs(svc)
    assert isinstance(parsed, Valid)
    assert parsed.key == "beta.cloud.google.com/backend-config"
    assert parsed.value.names() == ["bc-http"]


def test_parse_backend_configs_missing():
    """Test that a service without either key yields Missing."""
    parsed = parse_backend_configs(_svc({"other": "x"}))
    assert isinstance(parsed, Missing)
    assert parsed.keys == (
        "cloud.google.com/backend-config",
        "beta.cloud.google.com/backend-config",
    )


def test_parse_backend_configs_malformed():
    """Test that invalid JSON and wrong shapes are Malformed."""
    for raw in ["not json", "[]", '{"default": 7}', '{"ports": ["bc"]}']:
        parsed = parse_backend_configs(_svc({"cloud.google.com/backend-config": raw}))
        assert isinstance(parsed, Malformed), raw
        assert parsed.raw == raw
        assert parsed.reason


def test_null_annotations_parse_as_empty():
    """Test that a JSON null value is a valid, empty payload."""
    parsed = parse_backend_configs(_svc({"cloud.google.com/backend-config": "null"}))
    assert isinstance(parsed, Valid)
    assert parsed.value.names() == []

    assert parse_app_protocols(_svc({"cloud.google.com/app-protocols": "null"})).value == {}
    assert parse_neg(_svc({"cloud.google.com/neg": "null"})).value == NegAnnotation()


def test_backend_config_names_keep_order_and_duplicates():
    """Test that names list default first, then ports in declaration order."""
    refs = BackendConfigRefs(default="bc", ports={"443": "bc-tls", "80": "bc"})
    assert refs.names() == ["bc", "bc-tls", "bc"]
    assert BackendConfigRefs().names() == []


def test_parse_app_protocols_tries_every_key():
    """Test that the GA app-protocols key is honoured when the alpha key is absent."""
    svc = _svc({"cloud.google.com/app-protocols": '{"443": "HTTPS"}'})
    parsed = parse_app_protocols(svc)
    assert isinstance(parsed, Valid)
    assert parsed.value == {"443": "HTTPS"}


def test_parse_app_protocols_prefers_alpha_key():
    """Test that the alpha key wins when a service carries both keys."""
    svc = _svc({
        "service.alpha.kubernetes.io/app-protocols": '{"80": "BOGUS"}',
        "cloud.google.com/app-protocols": '{"80": "HTTP"}',
    })
    parsed = parse_app_protocols(svc)
    assert parsed.key == "service.alpha.kubernetes.io/app-protocols"
    assert parsed.value == {"80": "BOGUS"}


def test_parse_app_protocols_rejects_non_string_values():
    """Test that protocol values must be strings."""
    parsed = parse_app_protocols(_svc({"cloud.google.com/app-protocols": '{"80": 1}'}))
    assert isinstance(parsed, Malformed)


def test_parse_neg_strict_bool():
    """Test that the NEG ingress field must be a JSON boolean."""
    valid = parse_neg(_svc({"cloud.google.com/neg": '{"ingress": true}'}))
    assert isinstance(valid, Valid)
    assert valid.value == NegAnnotation(ingress=True)

    coerced = parse_neg(_svc({"cloud.google.com/neg": '{"ingress": "true"}'}))
    assert isinstance(coerced, Malformed)


def test_parse_neg_exposed_ports_only():
    """Test that a standalone-NEG annotation defaults ingress to false."""
    parsed = parse_neg(_svc({"cloud.google.com/neg": '{"exposed_ports": {"80": {}}}'}))
    assert isinstance(parsed, Valid)
    assert parsed.value.ingress is False
    assert parsed.value.exposed_ports == {"80": {}}


def test_is_l7_ilb():
    """Test detection of the internal L7 ILB ingress class."""
    assert is_l7_ilb(_svc({"kubernetes.io/ingress.class": "gce-internal"}))
    assert not is_l7_ilb(_svc({"kubernetes.io/ingress.class": "gce"}))
    assert not is_l7_ilb(_svc())
