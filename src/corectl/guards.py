"""Authorization guard parsing for grant/revoke requests.

A guard token has the form ``<type>=<value>`` where the type is matched
case-insensitively:

- ``token=<id>`` selects an access token
- ``CN=<name>`` selects an X.509 Common Name
- ``OU=<name>`` selects an X.509 Organizational Unit
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

from corectl.errors import UnknownGuardTypeError

GUARD_SEPARATOR = "="

GRANT_PATHS = {
    "grant": "/create-authorization-grant",
    "revoke": "/delete-authorization-grant",
}

GUARD_HELP = """
Where guard is one of:
  token=[id]   to affect an access token
  CN=[name]    to affect an X.509 Common Name
  OU=[name]    to affect an X.509 Organizational Unit

The type of guard (before the = sign) is case-insensitive.
"""


@dataclass(frozen=True)
class AccessTokenGuard:
    id: str

    guard_type = "access_token"

    def guard_data(self) -> dict:
        return {"id": self.id}


@dataclass(frozen=True)
class X509SubjectGuard:
    field: Literal["CN", "OU"]
    value: str

    guard_type = "x509"

    def guard_data(self) -> dict:
        return {"subject": {self.field: self.value}}


GuardSpec = Union[AccessTokenGuard, X509SubjectGuard]


@dataclass(frozen=True)
class GrantRequest:
    policy: str
    guard: GuardSpec

    def to_payload(self) -> dict:
        return {
            "policy": self.policy,
            "guard_type": self.guard.guard_type,
            "guard_data": self.guard.guard_data(),
        }


def split_after(value: str, sep: str) -> tuple[str, str]:
    """Split ``value`` just after the first ``sep``.

    The separator stays on the prefix. When ``sep`` is absent the whole
    string is the prefix and the remainder is empty.
    """
    index = value.find(sep)
    if index < 0:
        return value, ""
    cut = index + len(sep)
    return value[:cut], value[cut:]


def parse_guard(token: str) -> GuardSpec:
    prefix, data = split_after(token, GUARD_SEPARATOR)
    kind = prefix.upper()
    if kind == "TOKEN=":
        return AccessTokenGuard(id=data)
    if kind == "CN=":
        return X509SubjectGuard(field="CN", value=data)
    if kind == "OU=":
        return X509SubjectGuard(field="OU", value=data)
    raise UnknownGuardTypeError(prefix)


def build_grant_request(policy: str, guard_token: str) -> GrantRequest:
    return GrantRequest(policy=policy, guard=parse_guard(guard_token))
