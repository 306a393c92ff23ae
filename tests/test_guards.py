from __future__ import annotations

import pytest

from corectl.errors import UnknownGuardTypeError, UsageError
from corectl.guards import (
    AccessTokenGuard,
    X509SubjectGuard,
    build_grant_request,
    parse_guard,
    split_after,
)


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("token=abc123", AccessTokenGuard(id="abc123")),
        ("TOKEN=abc123", AccessTokenGuard(id="abc123")),
        ("Token=", AccessTokenGuard(id="")),
        ("CN=Org Admins", X509SubjectGuard(field="CN", value="Org Admins")),
        ("cn=Org Admins", X509SubjectGuard(field="CN", value="Org Admins")),
        ("ou=Ops", X509SubjectGuard(field="OU", value="Ops")),
        ("OU=a=b", X509SubjectGuard(field="OU", value="a=b")),
    ],
)
def test_parse_guard_recognized_prefixes(token: str, expected) -> None:  # noqa: ANN001
    assert parse_guard(token) == expected


def test_parse_guard_is_repeatable() -> None:
    assert parse_guard("CN=Org Admins") == parse_guard("CN=Org Admins")


def test_parse_guard_rejects_unknown_prefix() -> None:
    with pytest.raises(UnknownGuardTypeError) as excinfo:
        parse_guard("email=ops@example.com")
    assert excinfo.value.prefix == "email="
    assert "email=" in str(excinfo.value)
    assert isinstance(excinfo.value, UsageError)


def test_parse_guard_without_separator_is_unknown_type() -> None:
    with pytest.raises(UnknownGuardTypeError) as excinfo:
        parse_guard("token")
    assert excinfo.value.prefix == "token"


def test_split_after_keeps_separator_on_prefix() -> None:
    assert split_after("CN=a=b", "=") == ("CN=", "a=b")
    assert split_after("plain", "=") == ("plain", "")


def test_grant_request_payload_for_x509_subject() -> None:
    request = build_grant_request("policy-a", "CN=Org Admins")
    assert request.to_payload() == {
        "policy": "policy-a",
        "guard_type": "x509",
        "guard_data": {"subject": {"CN": "Org Admins"}},
    }


def test_grant_request_payload_for_access_token() -> None:
    request = build_grant_request("policy-a", "token=abc123")
    assert request.to_payload() == {
        "policy": "policy-a",
        "guard_type": "access_token",
        "guard_data": {"id": "abc123"},
    }
