import pytest

from caddyhook.routes import RedirectSpec, RouteSpec, ValidationError, parse_redirect, parse_route


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("shop.example.com:backend:8080", ("shop.example.com", "backend", "8080")),
        ("a:b:1", ("a", "b", "1")),
        ("  wiki.lan:wiki:65535\n", ("wiki.lan", "wiki", "65535")),
    ],
)
def test_three_fields_are_kept_in_order(raw, expected):
    spec = parse_route(raw)
    assert (spec.public_host, spec.internal_host, spec.internal_port) == expected
    assert spec.private is False
    assert spec.identity == expected[0]


@pytest.mark.parametrize("raw", ["", "   ", None])
def test_empty_input_is_a_noop(raw):
    assert parse_route(raw) is None


def test_missing_port_is_rejected_with_format_hint():
    with pytest.raises(ValidationError) as exc:
        parse_route("shop.example.com:backend")
    assert "Missing port" in str(exc.value)
    assert "PUBLIC_NAME:INTERN_NAME:INTERN_PORT" in str(exc.value)


@pytest.mark.parametrize("raw", ["shop.example.com", "a:b:c:d", "a:b:1:2:3"])
def test_wrong_field_count_is_rejected(raw):
    with pytest.raises(ValidationError):
        parse_route(raw)


@pytest.mark.parametrize("raw", [":backend:80", "a:b:", "a:b:http", "a:b:0", "a:b:70000"])
def test_empty_or_bad_fields_are_rejected(raw):
    with pytest.raises(ValidationError):
        parse_route(raw)


def test_private_flag_is_carried_alongside():
    spec = parse_route("a.lan:svc:80", private=True)
    assert spec == RouteSpec("a.lan", "svc", "80", private=True)
    assert spec.upstream == "svc:80"


def test_empty_internal_name_uses_container_hostname():
    spec = parse_route("a.lan::3000", default_internal="ctr-1234")
    assert spec.internal_host == "ctr-1234"


def test_empty_internal_name_without_hostname_is_rejected():
    with pytest.raises(ValidationError):
        parse_route("a.lan::3000")


def test_validation_error_is_a_value_error():
    assert issubclass(ValidationError, ValueError)


def test_parse_redirect():
    spec = parse_redirect("old.example.com", "https://new.example.com")
    assert spec == RedirectSpec("old.example.com", "https://new.example.com")
    assert spec.identity == "old.example.com"

    with pytest.raises(ValidationError):
        parse_redirect("", "https://new.example.com")
    with pytest.raises(ValidationError):
        parse_redirect("old.example.com", " ")
